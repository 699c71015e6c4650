import argparse
from dataclasses import dataclass, field
from pathlib import Path
from typing import ClassVar

from equity_tracker.utils.parser_utils import add_config_options


class TestParserUtils:
    def test_add_config_options(self):
        @dataclass
        class TestConfig:
            str_option: str
            int_option: int
            path_option: Path
            bool_option: bool
            _private_field: str = field(default="private")
            CLASS_VAR: ClassVar[str] = "class-var"

        parser = argparse.ArgumentParser()
        add_config_options(parser, TestConfig)

        args = parser.parse_args([])
        assert vars(args) == {
            "str_option": None,
            "int_option": None,
            "path_option": None,
            "bool_option": None,
        }

        args = parser.parse_args(["--int-option", "5", "--path-option", "x.db", "--bool-option"])
        assert args.int_option == "5"
        assert args.path_option == "x.db"
        assert args.bool_option is True

    def test_app_config_options(self):
        parser = argparse.ArgumentParser()
        add_config_options(parser)

        args = parser.parse_args(["--db-path", "other.db", "--ratio-weighting", "quantity"])

        assert args.db_path == "other.db"
        assert args.ratio_weighting == "quantity"
        assert args.log_level is None
