from __future__ import annotations

import itertools
import unittest

from punchclock.errors import ApiError, DayComplete, DuplicateEntry, OutOfOrder, UnknownType
from punchclock.models import PunchType
from punchclock.services.sequence import (
    DayState,
    current_state,
    next_expected_punch,
    validate_next_punch,
)

CANONICAL = [PunchType.ENTRY, PunchType.LUNCH_START, PunchType.LUNCH_END, PunchType.EXIT]


def _replay(sequence: list[PunchType]) -> ApiError | None:
    committed: list[PunchType] = []
    for punch_type in sequence:
        try:
            validate_next_punch(punch_type, committed)
        except ApiError as exc:
            return exc
        committed.append(punch_type)
    return None


class PunchSequenceTests(unittest.TestCase):
    def test_canonical_sequence_is_legal(self) -> None:
        self.assertIsNone(_replay(CANONICAL))

    def test_every_other_ordering_is_rejected(self) -> None:
        for permutation in itertools.permutations(CANONICAL):
            if list(permutation) == CANONICAL:
                continue
            with self.subTest(permutation=[item.value for item in permutation]):
                error = _replay(list(permutation))
                self.assertIsInstance(error, (OutOfOrder, DuplicateEntry, DayComplete))

    def test_repeating_a_punch_is_rejected(self) -> None:
        self.assertIsInstance(_replay([PunchType.ENTRY, PunchType.ENTRY]), DuplicateEntry)
        self.assertIsInstance(
            _replay([PunchType.ENTRY, PunchType.LUNCH_START, PunchType.LUNCH_START]),
            OutOfOrder,
        )

    def test_fifth_punch_reports_day_complete(self) -> None:
        for punch_type in PunchType:
            with self.subTest(punch_type=punch_type.value):
                with self.assertRaises(DayComplete):
                    validate_next_punch(punch_type, CANONICAL)

    def test_day_complete_honours_configured_limit(self) -> None:
        with self.assertRaises(DayComplete):
            validate_next_punch(PunchType.LUNCH_START, [PunchType.ENTRY], max_punches_per_day=1)

    def test_out_of_order_message_names_required_punch(self) -> None:
        with self.assertRaises(OutOfOrder) as exc:
            validate_next_punch(PunchType.EXIT, [PunchType.ENTRY])
        self.assertIn("Lunch end", exc.exception.message)

    def test_unknown_type_is_rejected(self) -> None:
        for raw_value in ["BREAK", "", None, 3]:
            with self.subTest(raw_value=raw_value):
                with self.assertRaises(UnknownType):
                    validate_next_punch(raw_value, [])  # type: ignore[arg-type]

    def test_raw_strings_are_parsed(self) -> None:
        self.assertEqual(validate_next_punch(" entry ", []), PunchType.ENTRY)
        self.assertEqual(validate_next_punch("LUNCH_START", [PunchType.ENTRY]), PunchType.LUNCH_START)

    def test_state_tracking(self) -> None:
        self.assertEqual(current_state([]), DayState.NOT_STARTED)
        self.assertEqual(current_state(CANONICAL[:1]), DayState.WORKING)
        self.assertEqual(current_state(CANONICAL[:2]), DayState.AT_LUNCH)
        self.assertEqual(current_state(CANONICAL[:3]), DayState.RETURNED_FROM_LUNCH)
        self.assertEqual(current_state(CANONICAL), DayState.DONE)

        self.assertEqual(next_expected_punch([]), PunchType.ENTRY)
        self.assertEqual(next_expected_punch(CANONICAL[:3]), PunchType.EXIT)
        self.assertIsNone(next_expected_punch(CANONICAL))


if __name__ == "__main__":
    unittest.main()
