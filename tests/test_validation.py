"""
Unit tests for module input validation
"""

import json
import unittest
import sys
import os

# Add the project root to the path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from modules.validation import (
    ValidationError,
    validate_cluster_name,
    validate_json,
    validate_kms_key_deletion_window,
    validate_one_of,
    validate_pipeline_name,
    validate_range,
    validate_references,
    validate_repository_id,
    validate_repository_name,
    validate_scaling,
    validate_subnet_ids,
    AUTHENTICATION_MODES,
)


class TestClusterName(unittest.TestCase):

    def test_accepts_valid_names(self):
        for name in ["a", "my-cluster", "Cluster_01", "9lives"]:
            with self.subTest(name=name):
                self.assertEqual(validate_cluster_name(name), name)

    def test_rejects_invalid_names(self):
        for name in ["", "-leading-hyphen", "_underscore", "has space", "dots.not.allowed", "x" * 101,
                     "my-cluster\n"]:
            with self.subTest(name=name):
                with self.assertRaises(ValidationError):
                    validate_cluster_name(name)

    def test_accepts_maximum_length(self):
        self.assertEqual(validate_cluster_name("a" * 100), "a" * 100)


class TestSubnetIds(unittest.TestCase):

    def test_requires_two_subnets(self):
        with self.assertRaises(ValidationError):
            validate_subnet_ids(["subnet-1"])
        with self.assertRaises(ValidationError):
            validate_subnet_ids([])
        with self.assertRaises(ValidationError):
            validate_subnet_ids(None)

    def test_rejects_non_list(self):
        with self.assertRaises(ValidationError):
            validate_subnet_ids("subnet-1,subnet-2")

    def test_accepts_two_or_more(self):
        self.assertEqual(validate_subnet_ids(["subnet-1", "subnet-2"]), ["subnet-1", "subnet-2"])


class TestRangesAndEnums(unittest.TestCase):

    def test_kms_deletion_window_bounds(self):
        self.assertEqual(validate_kms_key_deletion_window(7), 7)
        self.assertEqual(validate_kms_key_deletion_window(30), 30)
        for days in [6, 31, 0]:
            with self.subTest(days=days):
                with self.assertRaises(ValidationError):
                    validate_kms_key_deletion_window(days)

    def test_range_rejects_booleans_and_strings(self):
        with self.assertRaises(ValidationError):
            validate_range("disk_size", True, 0, 10)
        with self.assertRaises(ValidationError):
            validate_range("disk_size", "20", 1, 100)

    def test_authentication_mode_enum(self):
        for mode in AUTHENTICATION_MODES:
            self.assertEqual(validate_one_of("authentication_mode", mode, AUTHENTICATION_MODES), mode)
        with self.assertRaises(ValidationError):
            validate_one_of("authentication_mode", "IAM", AUTHENTICATION_MODES)

    def test_scaling_ordering(self):
        validate_scaling(desired_size=2, min_size=1, max_size=3)
        validate_scaling(desired_size=0, min_size=0, max_size=1)
        with self.assertRaises(ValidationError):
            validate_scaling(desired_size=4, min_size=1, max_size=3)
        with self.assertRaises(ValidationError):
            validate_scaling(desired_size=0, min_size=0, max_size=0)
        with self.assertRaises(ValidationError):
            validate_scaling(desired_size=1, min_size=2, max_size=3)


class TestDocumentsAndReferences(unittest.TestCase):

    def test_json_dict_is_serialised(self):
        document = {"Version": "2012-10-17", "Statement": []}
        self.assertEqual(json.loads(validate_json("policy", document)), document)

    def test_json_string_is_returned_unchanged(self):
        self.assertEqual(validate_json("policy", '{"a": 1}'), '{"a": 1}')

    def test_invalid_json_raises(self):
        with self.assertRaises(ValidationError):
            validate_json("policy", "{not json")
        with self.assertRaises(ValidationError):
            validate_json("policy", None)

    def test_unknown_references_raise(self):
        self.assertEqual(validate_references("roles[a].policy_keys", ["p1"], {"p1": {}}, "policies"), ["p1"])
        with self.assertRaisesRegex(ValidationError, "unknown policies: p2"):
            validate_references("roles[a].policy_keys", ["p1", "p2"], {"p1": {}}, "policies")


class TestNames(unittest.TestCase):

    def test_repository_names(self):
        for name in ["app", "team/app", "team/app-api", "a.b_c"]:
            with self.subTest(name=name):
                validate_repository_name(name)
        for name in ["A", "App", "team//app", "-app", "app-", "my-repo\n"]:
            with self.subTest(name=name):
                with self.assertRaises(ValidationError):
                    validate_repository_name(name)

    def test_pipeline_names(self):
        validate_pipeline_name("release@main.v2")
        with self.assertRaises(ValidationError):
            validate_pipeline_name("has space")
        with self.assertRaises(ValidationError):
            validate_pipeline_name("p" * 101)
        with self.assertRaises(ValidationError):
            validate_pipeline_name("release\n")

    def test_repository_id(self):
        validate_repository_id("octo-org/service.api")
        for value in ["no-slash", "a/b/c", "/repo", "octo/app\n"]:
            with self.subTest(value=value):
                with self.assertRaises(ValidationError):
                    validate_repository_id(value)


if __name__ == "__main__":
    unittest.main(verbosity=2)
