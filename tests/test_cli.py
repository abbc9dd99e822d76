"""Tests for the omnigen command-line interface (omnigen.cli).

Tests cover:
- NAME=VALUE prop parsing
- The platforms and kinds listings
- generate: exit codes, written artifacts and job.json
- Loading configuration from --config and the environment
- Merging --request files with flags
"""

from __future__ import annotations

import argparse
import json
import os
from pathlib import Path
from unittest.mock import AsyncMock, patch

import httpx
import pytest
from rich.console import Console

from omnigen.cli import build_parser, build_request, main, parse_prop
from omnigen.config import EngineConfig


@pytest.fixture
def cli_console():
    """Recording console patched in for both the CLI and the print helpers."""
    out = Console(record=True, width=200)
    with patch("omnigen.cli.console", out), patch("omnigen.utils.console", out):
        yield out


@pytest.fixture
def clean_env():
    with patch.dict(os.environ, {}, clear=True):
        yield


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


class TestParseProp:
    @pytest.mark.unit
    def test_name_value(self):
        assert parse_prop("variant=primary") == ("variant", "primary")

    @pytest.mark.unit
    def test_value_may_contain_equals(self):
        assert parse_prop("href=/pay?a=b") == ("href", "/pay?a=b")

    @pytest.mark.unit
    def test_empty_value_allowed(self):
        assert parse_prop("label=") == ("label", "")

    @pytest.mark.unit
    @pytest.mark.parametrize("raw", ["variant", "=primary", "  =x"])
    def test_malformed(self, raw: str):
        with pytest.raises(argparse.ArgumentTypeError):
            parse_prop(raw)

    @pytest.mark.unit
    def test_parser_collects_repeatable_flags(self):
        args = build_parser().parse_args(
            [
                "generate", "--kind", "button",
                "--prop", "size=lg", "--prop", "variant=ghost",
                "--platform", "react", "--platform", "vue",
                "--tag", "a11y:aaa",
            ]
        )
        assert args.prop == [("size", "lg"), ("variant", "ghost")]
        assert args.platform == ["react", "vue"]
        assert args.tag == ["a11y:aaa"]
        assert args.output is None

    @pytest.mark.unit
    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


# ---------------------------------------------------------------------------
# Listings
# ---------------------------------------------------------------------------


class TestListings:
    @pytest.mark.unit
    def test_platforms(self, cli_console: Console):
        assert main(["platforms"]) == 0
        text = cli_console.export_text()
        for platform in ("react", "react-native", "headless-ui", ".component.ts"):
            assert platform in text

    @pytest.mark.unit
    def test_kinds(self, cli_console: Console):
        assert main(["kinds"]) == 0
        text = cli_console.export_text()
        for kind in ("button", "input", "card", "payment-form"):
            assert kind in text
        assert "security:restricted" in text


# ---------------------------------------------------------------------------
# generate
# ---------------------------------------------------------------------------


class TestGenerate:
    @pytest.mark.integration
    def test_writes_accepted_artifacts(self, tmp_path: Path, cli_console: Console, clean_env):
        code = main(
            [
                "generate", "--kind", "button", "--prop", "variant=primary",
                "--platform", "react", "--platform", "angular",
                "--output", str(tmp_path),
            ]
        )

        assert code == 0
        react = tmp_path / "react" / "Button.tsx"
        assert react.exists()
        assert "Generated by omnigen" in react.read_text(encoding="utf-8")
        assert (tmp_path / "angular" / "Button.component.ts").exists()

        job = json.loads((tmp_path / "job.json").read_text(encoding="utf-8"))
        assert job["status"] == "completed"
        assert set(job["variants"]) == {"react", "angular"}
        assert "Wrote 2 artifact(s)" in cli_console.export_text()

    @pytest.mark.integration
    def test_rejected_platform_not_written(self, tmp_path: Path, cli_console: Console, clean_env):
        code = main(
            [
                "generate", "--kind", "card",
                "--platform", "react", "--platform", "headless-ui",
                "--output", str(tmp_path),
            ]
        )

        assert code == 0
        assert (tmp_path / "react").is_dir()
        assert not (tmp_path / "headless-ui").exists()
        text = cli_console.export_text()
        assert "UnsupportedPlatform" in text
        assert "1 platform(s) rejected: headless-ui" in text

    @pytest.mark.integration
    def test_all_rejected_exit_code(self, cli_console: Console, clean_env):
        code = main(["generate", "--kind", "button", "--prop", "size=tiny", "--platform", "vue"])
        assert code == 2
        assert "touch-target-minimum!" in cli_console.export_text()

    @pytest.mark.integration
    def test_unknown_kind(self, tmp_path: Path, cli_console: Console, clean_env):
        code = main(
            ["generate", "--kind", "widgetzzz", "--platform", "react", "-o", str(tmp_path)]
        )

        assert code == 1
        assert "UnknownKind" in cli_console.export_text()
        job = json.loads((tmp_path / "job.json").read_text(encoding="utf-8"))
        assert job["status"] == "failed"
        assert job["variants"] == {}

    @pytest.mark.integration
    def test_invalid_prop(self, cli_console: Console, clean_env):
        code = main(["generate", "--kind", "button", "--prop", "size=giant", "--platform", "react"])
        assert code == 1
        assert "InvalidProp" in cli_console.export_text()

    @pytest.mark.integration
    def test_default_platforms_from_env(self, tmp_path: Path, cli_console: Console):
        env = {"OMNIGEN_PLATFORMS": "svelte,vanilla"}
        with patch.dict(os.environ, env, clear=True):
            code = main(["generate", "--kind", "input", "-o", str(tmp_path)])

        assert code == 0
        assert (tmp_path / "svelte" / "Input.svelte").exists()
        assert (tmp_path / "vanilla" / "Input.js").exists()

    @pytest.mark.integration
    def test_config_file(self, tmp_path: Path, cli_console: Console, clean_env):
        config_path = EngineConfig(default_platforms=["vue"]).save(tmp_path / "omnigen.json")
        out_dir = tmp_path / "out"

        code = main(
            ["--config", str(config_path), "generate", "--kind", "button", "-o", str(out_dir)]
        )

        assert code == 0
        assert [p.name for p in out_dir.iterdir() if p.is_dir()] == ["vue"]

    @pytest.mark.integration
    def test_hint_warns_when_ollama_unreachable(self, tmp_path: Path, cli_console: Console):
        mock_client = AsyncMock()
        mock_client.get = AsyncMock(side_effect=httpx.ConnectError("refused"))
        mock_client.__aenter__ = AsyncMock(return_value=mock_client)
        mock_client.__aexit__ = AsyncMock(return_value=False)
        env = {"OMNIGEN_OLLAMA_ENABLED": "1", "OMNIGEN_OLLAMA_URL": "http://ollama:11434"}

        with patch.dict(os.environ, env, clear=True), patch(
            "httpx.AsyncClient", return_value=mock_client
        ):
            code = main(
                ["generate", "--hint", "a large outline button", "--platform", "react",
                 "-o", str(tmp_path)]
            )

        assert code == 0
        assert "Ollama is not reachable at http://ollama:11434" in cli_console.export_text()
        assert (tmp_path / "react" / "Button.tsx").exists()

    @pytest.mark.integration
    def test_summary_table(self, cli_console: Console, clean_env):
        code = main(["generate", "--kind", "button", "--platform", "vue", "--tag", "a11y:aaa"])
        assert code == 0
        text = cli_console.export_text()
        assert "Summary" in text
        assert "a11y:aaa" in text

    @pytest.mark.integration
    def test_summary_reports_compliance_score(self, cli_console: Console, clean_env):
        code = main(
            ["generate", "--kind", "button", "--prop", "size=sm", "--platform", "react"]
        )
        assert code == 0
        text = cli_console.export_text()
        assert "Score" in text
        assert "95/100" in text


# ---------------------------------------------------------------------------
# --request files
# ---------------------------------------------------------------------------


class TestRequestFile:
    @pytest.mark.unit
    def test_flags_override_file(self, tmp_path: Path):
        saved = tmp_path / "request.json"
        saved.write_text(
            json.dumps(
                {
                    "kind": "card",
                    "props": {"title": "Plans", "variant": "outline"},
                    "platforms": ["vue"],
                    "compliance_tags": ["a11y:aa"],
                }
            ),
            encoding="utf-8",
        )
        args = build_parser().parse_args(
            [
                "generate", "--request", str(saved),
                "--prop", "variant=elevated", "--tag", "security:restricted",
            ]
        )

        request = build_request(args, EngineConfig())

        assert request["kind"] == "card"
        assert request["props"] == {"title": "Plans", "variant": "elevated"}
        assert request["platforms"] == ["vue"]
        assert request["compliance_tags"] == ["a11y:aa", "security:restricted"]

    @pytest.mark.unit
    def test_defaults_without_file(self):
        args = build_parser().parse_args(["generate", "--kind", "button"])
        request = build_request(args, EngineConfig(default_platforms=["svelte"]))
        assert request == {
            "kind": "button",
            "props": {},
            "platforms": ["svelte"],
            "compliance_tags": [],
        }

    @pytest.mark.integration
    def test_generate_from_file(self, tmp_path: Path, cli_console: Console, clean_env):
        saved = tmp_path / "request.json"
        saved.write_text(
            json.dumps(
                {"kind": "payment-form", "props": {"currency": "NOK"}, "platforms": ["react"]}
            ),
            encoding="utf-8",
        )
        out_dir = tmp_path / "out"

        code = main(["generate", "--request", str(saved), "-o", str(out_dir)])

        assert code == 0
        assert "NOK" in (out_dir / "react" / "PaymentForm.tsx").read_text(encoding="utf-8")

    @pytest.mark.unit
    def test_non_object_file(self, tmp_path: Path, cli_console: Console, clean_env):
        saved = tmp_path / "request.json"
        saved.write_text("[1, 2]", encoding="utf-8")
        assert main(["generate", "--request", str(saved)]) == 1
        assert "must contain a JSON object" in cli_console.export_text()

    @pytest.mark.unit
    def test_missing_file(self, tmp_path: Path, cli_console: Console, clean_env):
        assert main(["generate", "--request", str(tmp_path / "nope.json")]) == 1
        assert "Cannot read request" in cli_console.export_text()
