"""
tests/test_cli.py — ``search6-lookup`` Command
================================================
"""

from __future__ import annotations

from unittest.mock import patch

import httpx

from search6.cli import main

USER = {
    "id": 302094807046684672,
    "username": "Someone",
    "discriminator": "1234",
    "xp": 1500,
    "rank": 3,
    "level": 5,
}


def _run(response=None, *, side_effect=None, argv=None):
    with patch("search6.cli.httpx.get", return_value=response, side_effect=side_effect) as get:
        code = main(argv or [str(USER["id"]), "--base-url", "http://s6.local/"])
    return code, get


class TestLookupCommand:
    def test_prints_level_and_card(self, capsys):
        code, get = _run(httpx.Response(200, json=USER))
        out = capsys.readouterr().out.splitlines()
        assert code == 0
        assert out[0] == f"Someone#1234 ({USER['id']}) is level 5"
        assert out[1] == f"http://s6.local/card?id={USER['id']} <@{USER['id']}>"
        assert get.call_args.args[0] == "http://s6.local/api"
        assert get.call_args.kwargs["params"] == {"id": str(USER["id"])}

    def test_no_card_below_level_five(self, capsys):
        code, _ = _run(httpx.Response(200, json={**USER, "level": 4}))
        out = capsys.readouterr().out.splitlines()
        assert code == 0
        assert len(out) == 1

    def test_invalid_id(self, capsys):
        code, get = _run(argv=["Someone#1234"])
        assert code == 1
        get.assert_not_called()

    def test_non_ascii_digits_rejected(self, capsys):
        code, get = _run(argv=["²"])
        assert code == 1
        get.assert_not_called()

    def test_request_failure(self, capsys):
        code, _ = _run(side_effect=httpx.ConnectError("refused"))
        assert code == 2
        assert "refused" in capsys.readouterr().out

    def test_lookup_rejected(self, capsys):
        code, _ = _run(httpx.Response(404, json={"detail": "ID not known"}))
        assert code == 3
        assert "ID not known" in capsys.readouterr().out

    def test_unexpected_body(self, capsys):
        code, _ = _run(httpx.Response(200, json={"id": "x"}))
        assert code == 4
