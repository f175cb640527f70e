"""
Unit tests for derived resource names
"""

import unittest
import sys
import os

# Add the project root to the path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from modules.naming import IAM_ROLE_NAME_MAX, bounded_name


class TestBoundedName(unittest.TestCase):

    def test_short_names_are_joined_unchanged(self):
        self.assertEqual(bounded_name("app", "-build-role", IAM_ROLE_NAME_MAX), "app-build-role")

    def test_long_names_fit_the_limit_and_keep_the_suffix(self):
        name = bounded_name("a" * 100, "-pipeline-role", IAM_ROLE_NAME_MAX)

        self.assertEqual(len(name), IAM_ROLE_NAME_MAX)
        self.assertTrue(name.startswith("aaaa"))
        self.assertTrue(name.endswith("-pipeline-role"))

    def test_distinct_long_names_stay_distinct(self):
        first = bounded_name("x" * 70 + "-blue", "-cluster-role", IAM_ROLE_NAME_MAX)
        second = bounded_name("x" * 70 + "-green", "-cluster-role", IAM_ROLE_NAME_MAX)

        self.assertNotEqual(first, second)

    def test_same_input_gives_same_name(self):
        self.assertEqual(
            bounded_name("c" * 80, "-nodes", 63),
            bounded_name("c" * 80, "-nodes", 63)
        )


if __name__ == "__main__":
    unittest.main(verbosity=2)
