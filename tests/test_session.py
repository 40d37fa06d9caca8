import random
import unittest

from formulatrivia.app.events import EventBus
from formulatrivia.engine import ConfigurationError, InvalidStateError, LevelSession
from formulatrivia.engine.session import STATE_CHANGED

from helpers import FakeClock, answer_correct, answer_wrong, make_questions


def new_session(level: int, n: int = 25, carried: float = 0.0, clock=None, **kw) -> LevelSession:
    return LevelSession(
        level,
        make_questions(level, n),
        carried,
        clock=clock or FakeClock(),
        rng=random.Random(7),
        **kw,
    )


class LevelSessionFlowTests(unittest.TestCase):
    def test_perfect_level_one(self) -> None:
        clock = FakeClock()
        s = new_session(1, clock=clock)
        for _ in range(25):
            answer_correct(s, clock, 2.0)

        st = s.get_state()
        self.assertTrue(st.is_level_complete)
        self.assertFalse(st.is_game_over)
        self.assertFalse(st.is_dnf)
        self.assertEqual(st.correct_answers, 25)
        self.assertEqual(st.penalties, 0)
        self.assertEqual(st.penalty_time, 0.0)
        self.assertTrue(st.is_paused)
        self.assertEqual(st.level_time, 50.0)
        self.assertEqual(s.get_final_time(), 50.0)
        self.assertTrue(s.is_perfect())
        self.assertIsNone(s.get_current_question())
        self.assertEqual(s.get_shuffled_answers(), [])

    def test_level_four_last_answer_wrong_finishes_dnf(self) -> None:
        clock = FakeClock()
        s = new_session(4, clock=clock)
        for _ in range(24):
            answer_correct(s, clock)
        answer_wrong(s, clock)

        st = s.get_state()
        self.assertEqual(st.penalties, 1)
        self.assertEqual(st.penalty_time, 6.0)
        self.assertTrue(st.is_level_complete)
        self.assertTrue(st.is_dnf)
        self.assertFalse(st.is_game_over)
        self.assertFalse(s.is_perfect())
        self.assertEqual(s.get_level_final_time(), 31.0)

    def test_level_five_three_wrong_is_game_over(self) -> None:
        clock = FakeClock()
        s = new_session(5, clock=clock)
        for _ in range(3):
            answer_wrong(s, clock)

        st = s.get_state()
        self.assertTrue(st.is_game_over)
        self.assertTrue(st.is_dnf)
        self.assertFalse(st.is_level_complete)
        self.assertEqual(st.penalties, 3)
        self.assertEqual(st.penalty_time, 13.0)
        self.assertEqual(st.current_question_index, 2)
        self.assertIsNone(s.get_current_question())
        with self.assertRaises(InvalidStateError):
            s.submit_answer("anything")

    def test_level_four_surcharge_only_once(self) -> None:
        s = new_session(4)
        answer_wrong(s)
        answer_wrong(s)
        self.assertEqual(s.get_state().penalty_time, 7.0)

    def test_level_three_flat_penalty(self) -> None:
        s = new_session(3)
        answer_wrong(s)
        answer_wrong(s)
        st = s.get_state()
        self.assertEqual(st.penalties, 2)
        self.assertEqual(st.penalty_time, 2.0)

    def test_early_levels_have_no_penalties(self) -> None:
        for level in (1, 2):
            s = new_session(level)
            answer_wrong(s)
            answer_wrong(s)
            st = s.get_state()
            self.assertEqual(st.wrong_answers, 2)
            self.assertEqual(st.penalties, 0)
            self.assertEqual(st.penalty_time, 0.0)

    def test_answers_are_recorded(self) -> None:
        clock = FakeClock()
        s = new_session(1, clock=clock)
        q = s.get_current_question()
        clock.advance(4.0)
        ans = s.submit_answer(q.correct_answer)
        self.assertTrue(ans.is_correct)
        self.assertEqual(ans.question_id, q.id)
        self.assertEqual(ans.time_to_answer, 4.0)
        answer_wrong(s)
        self.assertEqual([a.is_correct for a in s.get_answers()], [True, False])


class LevelSessionTimerTests(unittest.TestCase):
    def test_carried_over_time_starts_paused(self) -> None:
        clock = FakeClock()
        s = new_session(2, carried=120.5, clock=clock)
        st = s.get_state()
        self.assertTrue(st.is_paused)
        self.assertEqual(st.carried_over_time, 120.5)
        clock.advance(10.0)
        self.assertEqual(s.get_current_time(), 120.5)

        s.resume_timer()
        clock.advance(5.0)
        self.assertEqual(s.get_current_time(), 125.5)

    def test_carried_time_splits_total_and_level_time(self) -> None:
        clock = FakeClock()
        s = new_session(2, carried=120.5, clock=clock)
        s.resume_timer()
        for _ in range(25):
            answer_correct(s, clock)
        st = s.get_state()
        self.assertEqual(st.total_time, 145.5)
        self.assertEqual(st.level_time, 25.0)
        self.assertEqual(s.get_final_time(), 145.5)
        self.assertEqual(s.get_level_final_time(), 25.0)

    def test_pause_and_resume_are_idempotent(self) -> None:
        clock = FakeClock()
        s = new_session(1, clock=clock)
        clock.advance(3.0)
        s.pause_timer()
        clock.advance(10.0)
        s.pause_timer()
        self.assertEqual(s.get_current_time(), 3.0)

        s.resume_timer()
        clock.advance(2.0)
        s.resume_timer()
        self.assertEqual(s.get_current_time(), 5.0)
        self.assertEqual(s.get_time_elapsed(), 5.0)

    def test_fresh_session_is_running(self) -> None:
        clock = FakeClock()
        s = new_session(1, clock=clock)
        self.assertFalse(s.get_state().is_paused)
        clock.advance(1.5)
        self.assertEqual(s.get_current_time(), 1.5)


class LevelSessionLifecycleTests(unittest.TestCase):
    def test_reset_level_starts_new_attempt(self) -> None:
        clock = FakeClock()
        s = new_session(4, carried=30.0, clock=clock)
        s.resume_timer()
        answer_correct(s, clock)
        answer_wrong(s, clock)
        s.reset_level()

        st = s.get_state()
        self.assertEqual(st.attempt, 2)
        self.assertEqual(st.current_question_index, 0)
        self.assertEqual(st.correct_answers, 0)
        self.assertEqual(st.wrong_answers, 0)
        self.assertEqual(st.penalties, 0)
        self.assertEqual(st.penalty_time, 0.0)
        self.assertEqual(st.carried_over_time, 0.0)
        self.assertFalse(st.is_paused)
        self.assertEqual(s.get_answers(), [])
        self.assertEqual(s.get_current_time(), 0.0)

    def test_reset_after_elimination(self) -> None:
        clock = FakeClock()
        s = new_session(5, clock=clock)
        for _ in range(3):
            answer_wrong(s, clock)
        self.assertTrue(s.get_state().is_game_over)
        self.assertIsNone(s.get_current_question())

        s.reset_level()
        st = s.get_state()
        self.assertFalse(st.is_game_over)
        self.assertFalse(st.is_level_complete)
        self.assertFalse(st.is_dnf)
        self.assertEqual(st.total_time, 0.0)
        self.assertEqual(st.level_time, 0.0)
        self.assertEqual(st.penalties, 0)
        self.assertEqual(st.penalty_time, 0.0)
        self.assertEqual(st.wrong_answers, 0)
        self.assertEqual(st.attempt, 2)
        self.assertIsNotNone(s.get_current_question())
        self.assertEqual(len(s.get_shuffled_answers()), 4)

        answer_wrong(s, clock)
        self.assertEqual(s.get_state().penalty_time, 11.0)

    def test_invalid_level_and_negative_carry(self) -> None:
        for level in (0, 6):
            with self.assertRaises(ConfigurationError):
                new_session(level)
        with self.assertRaises(ConfigurationError):
            LevelSession(1, make_questions(1), -1.0, clock=FakeClock())

    def test_questions_are_sampled_without_duplicates(self) -> None:
        pool = make_questions(3, 40)
        s = LevelSession(3, pool, clock=FakeClock(), rng=random.Random(1))
        ids = [q.id for q in s.get_state().questions]
        self.assertEqual(len(ids), 25)
        self.assertEqual(len(set(ids)), 25)
        self.assertTrue(set(ids) <= {q.id for q in pool})

    def test_short_pool_is_played_as_is(self) -> None:
        s = new_session(1, n=4)
        self.assertEqual(len(s.get_state().questions), 4)
        for _ in range(4):
            answer_correct(s)
        self.assertTrue(s.get_state().is_level_complete)

    def test_shuffled_answers_stable_per_question(self) -> None:
        s = new_session(1)
        q = s.get_current_question()
        first = s.get_shuffled_answers()
        self.assertEqual(sorted(first), sorted(q.all_answers))
        self.assertEqual(s.get_shuffled_answers(), first)
        answer_correct(s)
        nxt = s.get_current_question()
        self.assertEqual(sorted(s.get_shuffled_answers()), sorted(nxt.all_answers))

    def test_state_snapshot_is_a_copy(self) -> None:
        s = new_session(1)
        snap = s.get_state()
        snap.questions.clear()
        snap.correct_answers = 99
        self.assertEqual(len(s.get_state().questions), 25)
        self.assertEqual(s.get_state().correct_answers, 0)

    def test_progress(self) -> None:
        s = new_session(1)
        p = s.get_progress()
        self.assertEqual(p["current"], 1)
        self.assertEqual(p["total"], 25)
        self.assertAlmostEqual(p["percentage"], 4.0)

    def test_state_changes_are_published(self) -> None:
        bus = EventBus()
        seen = []
        bus.subscribe(STATE_CHANGED, seen.append)
        s = new_session(1, events=bus)
        self.assertEqual(len(seen), 1)
        answer_correct(s)
        s.pause_timer()
        self.assertEqual(len(seen), 3)
        self.assertEqual(seen[-1].correct_answers, 1)
        self.assertTrue(seen[-1].is_paused)

        bus.unsubscribe(STATE_CHANGED, seen.append)
        s.resume_timer()
        self.assertEqual(len(seen), 3)


if __name__ == "__main__":
    unittest.main()
