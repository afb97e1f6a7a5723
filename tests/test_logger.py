import unittest

import fake_backend  # noqa: F401  puts src/ on sys.path

from utils.logger import get_logger, shared_console


class LoggerTestCase(unittest.TestCase):
    def test_loggers_share_one_console(self):
        first = get_logger("storefront.test.first")
        second = get_logger("storefront.test.second")

        self.assertIs(first.handlers[0].console, shared_console())
        self.assertIs(second.handlers[0].console, shared_console())


if __name__ == "__main__":
    unittest.main()
