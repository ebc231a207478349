import random
import unittest

from recalltrainer.generators import DIGITS, generate_digits
from recalltrainer.scoring import (
    percentage,
    score_identity,
    score_paired,
    score_positional,
    score_raw_counter,
    score_tokens,
)
from recalltrainer.scoring.engine import tokenize


class PercentageTests(unittest.TestCase):
    def test_integer_rounds_half_up(self) -> None:
        self.assertEqual(percentage(1, 8), 13)
        self.assertEqual(percentage(2, 3), 67)
        self.assertEqual(percentage(1, 3), 33)

    def test_one_decimal(self) -> None:
        self.assertEqual(percentage(1, 3, "one_decimal"), 33.3)
        self.assertEqual(percentage(2, 3, "one_decimal"), 66.7)

    def test_zero_denominator(self) -> None:
        self.assertEqual(percentage(0, 0), 0)
        self.assertEqual(percentage(5, 0, "one_decimal"), 0)


class PositionalTests(unittest.TestCase):
    def test_seeded_digits_fed_back(self) -> None:
        truth = generate_digits(10, random.Random(1234))
        card = score_positional(truth, truth, DIGITS, "one_decimal")
        self.assertEqual((card.correct, card.total, card.percentage), (10, 10, 100))

    def test_disjoint_input_scores_zero(self) -> None:
        card = score_positional("1111", "0000", DIGITS)
        self.assertEqual((card.correct, card.percentage), (0, 0))

    def test_non_alphabet_characters_stripped(self) -> None:
        card = score_positional("123456", "12 34-56", DIGITS)
        self.assertEqual(card.percentage, 100)

    def test_extra_and_missing_input(self) -> None:
        self.assertEqual(score_positional("12", "12345", DIGITS).correct, 2)
        card = score_positional("1234", "12", DIGITS)
        self.assertEqual((card.correct, card.total, card.percentage), (2, 4, 50))
        self.assertEqual(card.comparison[3].given, "")

    def test_binary_alphabet_drops_other_digits(self) -> None:
        card = score_positional("0101", "0 1 2 0 1", "01")
        self.assertEqual(card.correct, 4)

    def test_empty_truth(self) -> None:
        card = score_positional("", "123", DIGITS)
        self.assertEqual((card.total, card.percentage), (0, 0))


class TokenTests(unittest.TestCase):
    def test_word_split_on_whitespace_and_commas(self) -> None:
        card = score_tokens(["Apple", "river"], "apple, RIVER extra", "words", "one_decimal")
        self.assertEqual((card.correct, card.total, card.percentage), (2, 2, 100))
        self.assertEqual(card.extras, ("extra",))
        self.assertFalse(card.comparison[-1].correct)

    def test_lines_ignore_blank_lines(self) -> None:
        self.assertEqual(tokenize("apple\n\n river \n", "lines"), ["apple", "river"])

    def test_line_delimited_words_keep_inner_spaces(self) -> None:
        card = score_tokens(["ice cream"], "Ice Cream\n", "lines")
        self.assertEqual(card.correct, 1)

    def test_order_matters(self) -> None:
        card = score_tokens(["a", "b"], "b a", "words")
        self.assertEqual(card.correct, 0)


class IdentityTests(unittest.TestCase):
    def test_exact_order(self) -> None:
        self.assertEqual(score_identity([1, 2, 3, 4], [1, 2, 3, 4]).percentage, 100)

    def test_reverse_order_of_four_scores_zero(self) -> None:
        self.assertEqual(score_identity([1, 2, 3, 4], [4, 3, 2, 1]).percentage, 0)

    def test_short_selection(self) -> None:
        card = score_identity([1, 2, 3, 4], [1, 2])
        self.assertEqual((card.correct, card.percentage), (2, 50))


class PairedTests(unittest.TestCase):
    def test_maximum_is_two_per_item(self) -> None:
        truth = {0: ("Ana", "Silva"), 1: ("Bo", "Chen"), 2: ("Kofi", "Mensah")}
        answers = {k: {"first": f, "last": l} for k, (f, l) in truth.items()}
        card = score_paired(truth, answers)
        self.assertEqual((card.correct, card.total, card.percentage), (6, 6, 100))

    def test_fields_trimmed_and_case_insensitive(self) -> None:
        truth = {0: ("Ana", "Silva"), 1: ("Bo", "Chen")}
        card = score_paired(truth, {0: {"first": " ana ", "last": "SILVA"}})
        self.assertEqual((card.correct, card.total, card.percentage), (2, 4, 50))


class RawCounterTests(unittest.TestCase):
    def test_ratio(self) -> None:
        card = score_raw_counter(3, 4)
        self.assertEqual((card.correct, card.total, card.percentage), (3, 4, 75))

    def test_nothing_attempted(self) -> None:
        self.assertEqual(score_raw_counter(0, 0).percentage, 0)


if __name__ == "__main__":
    unittest.main()
