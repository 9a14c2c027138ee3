import unittest

from hamcrest import assert_that, is_, equal_to, is_not

from controllerconsole.support.mixins import CommonEqualityMixin, StringerMixin, quote


class Value(CommonEqualityMixin, StringerMixin):
    def __init__(self, a, b=None):
        self.a = a
        self.b = b


class OtherValue(CommonEqualityMixin):
    def __init__(self, a, b=None):
        self.a = a
        self.b = b


class MixinsTest(unittest.TestCase):

    def test_quote(self):
        assert_that(quote('x'), is_("'x'"))
        assert_that(quote(None), is_("None"))

    def test_str_lists_sorted_attributes(self):
        assert_that(str(Value(1, 'x')), is_("Value:{'a': '1', 'b': 'x'}"))
        assert_that(repr(Value(1)), is_("Value:{'a': '1', 'b': None}"))

    def test_equality(self):
        assert_that(Value(1, 2), is_(equal_to(Value(1, 2))))
        assert_that(Value(1, 2), is_not(equal_to(Value(1, 3))))
        assert_that(Value(1, 2) != Value(1, 2), is_(False))

    def test_different_class_not_equal(self):
        assert_that(Value(1, 2) == OtherValue(1, 2), is_(False))
        assert_that(Value(1, 2) == 1, is_(False))
