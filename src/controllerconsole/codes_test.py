import unittest

from hamcrest import assert_that, is_, none

from controllerconsole.codes import ResponseCode


class ResponseCodeTest(unittest.TestCase):

    def test_from_code(self):
        assert_that(ResponseCode.from_code(200), is_(ResponseCode.OK))
        assert_that(ResponseCode.from_code(428), is_(ResponseCode.NO_SUCH_PANEL))
        assert_that(ResponseCode.from_code(999), is_(none()))

    def test_synthetic_codes_have_no_number(self):
        assert_that(ResponseCode.DISCONNECTED.code, is_(none()))
        assert_that(ResponseCode.from_code(None), is_(none()))

    def test_parse_name_number_and_string(self):
        assert_that(ResponseCode.parse('TIME_OUT'), is_(ResponseCode.TIME_OUT))
        assert_that(ResponseCode.parse('time_out'), is_(ResponseCode.TIME_OUT))
        assert_that(ResponseCode.parse(504), is_(ResponseCode.TIME_OUT))
        assert_that(ResponseCode.parse(' 504 '), is_(ResponseCode.TIME_OUT))
        assert_that(ResponseCode.parse(ResponseCode.OK), is_(ResponseCode.OK))

    def test_parse_unknown(self):
        assert_that(ResponseCode.parse('bogus'), is_(none()))
        assert_that(ResponseCode.parse(None), is_(none()))
        assert_that(ResponseCode.parse(True), is_(none()))
        assert_that(ResponseCode.parse(1.5), is_(none()))
