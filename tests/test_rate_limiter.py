import unittest

from motionscroll.rate_limiter import RateLimiter
from tests.fakes import FakeClock


class TestRateLimiter(unittest.TestCase):
    def setUp(self):
        self.clock = FakeClock()
        self.limiter = RateLimiter(30, clock=self.clock)

    def test_first_emission_allowed(self):
        self.assertTrue(self.limiter.allows())
        self.assertTrue(self.limiter.first_in_window)

    def test_blocks_inside_interval(self):
        self.limiter.record()
        self.clock.advance_ms(20)
        self.assertFalse(self.limiter.allows())
        self.clock.advance_ms(10)
        self.assertTrue(self.limiter.allows())

    def test_window_counter(self):
        self.limiter.record()
        self.assertFalse(self.limiter.first_in_window)
        self.limiter.reset_window()
        self.assertTrue(self.limiter.first_in_window)
        # The shared timestamp survives a new window
        self.clock.advance_ms(5)
        self.assertFalse(self.limiter.allows())

    def test_explicit_timestamps(self):
        self.limiter.record(now=1.0)
        self.assertFalse(self.limiter.allows(now=1.029))
        self.assertTrue(self.limiter.allows(now=1.030))

    def test_zero_interval_never_blocks(self):
        limiter = RateLimiter(0, clock=self.clock)
        limiter.record()
        self.assertTrue(limiter.allows())


if __name__ == '__main__':
    unittest.main()
