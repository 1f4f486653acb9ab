#!/usr/bin/env python3
"""Test the games.log match session state machine."""

import os
import tempfile

import pytest

from quake_log_tools.log.games_parser import GamesLogParser, MatchState
from quake_log_tools.log.match import Match
from quake_log_tools.log.tokenizer import ParseErrorKind

SAMPLE_LOG = r"""  0:00 ------------------------------------------------------------
  0:00 InitGame: \sv_floodProtect\1\sv_maxPing\0\sv_minPing\0\sv_maxRate\10000\sv_minRate\0\sv_hostname\Code Miner Server\g_gametype\0
 15:00 Exit: Timelimit hit.
 20:34 ClientConnect: 2
 20:34 ClientUserinfoChanged: 2 n\Isgalamido\t\0\model\xian/default\hmodel\xian/default\g_redteam\\g_blueteam\\c1\4\c2\5\hc\100\w\0\l\0\tt\0\tl\0
 20:37 ClientBegin: 2
 20:37 ShutdownGame:
 20:37 ------------------------------------------------------------
 20:37 ------------------------------------------------------------
 20:37 InitGame: \sv_floodProtect\1\sv_maxPing\0\sv_minPing\0\sv_maxRate\10000\sv_minRate\0\sv_hostname\Code Miner Server\g_gametype\0
 20:38 ClientConnect: 2
 20:38 ClientUserinfoChanged: 2 n\Isgalamido\t\0\model\uriel/zael\hmodel\uriel/zael\g_redteam\\g_blueteam\\c1\5\c2\5\hc\100\w\0\l\0\tt\0\tl\0
 20:38 ClientBegin: 2
 20:40 Item: 2 weapon_rocketlauncher
 20:54 Kill: 1022 2 22: <world> killed Isgalamido by MOD_TRIGGER_HURT
 21:07 Kill: 1022 2 22: <world> killed Isgalamido by MOD_TRIGGER_HURT
 21:10 ClientDisconnect: 2
 21:15 ClientConnect: 2
 21:15 ClientUserinfoChanged: 2 n\Isgalamido\t\0\model\uriel/zael\hmodel\uriel/zael\g_redteam\\g_blueteam\\c1\5\c2\5\hc\100\w\0\l\0\tt\0\tl\0
 21:51 ClientConnect: 3
 21:51 ClientUserinfoChanged: 3 n\Dono da Bola\t\0\model\sarge/krusade\hmodel\sarge/krusade\g_redteam\\g_blueteam\\c1\5\c2\5\hc\95\w\0\l\0\tt\0\tl\0
 22:06 Kill: 2 3 7: Isgalamido killed Dono da Bola by MOD_ROCKET_SPLASH
 22:18 Kill: 2 2 7: Isgalamido killed Isgalamido by MOD_ROCKET_SPLASH
 22:40 Kill: 2 3 7: Isgalamido killed Dono da Bola by MOD_ROCKET_SPLASH
 23:06 Kill: 1022 3 22: <world> killed Dono da Bola by MOD_TRIGGER_HURT
 25:05 Exit: Fraglimit hit.
 25:41 ShutdownGame:
"""


def parse(text):
    parser = GamesLogParser()
    parser.parse_lines(text.splitlines(keepends=True))
    return parser


def test_sample_log_matches():
    parser = parse(SAMPLE_LOG)

    assert list(parser.matches) == ["match_1", "match_2"]
    assert parser.state is MatchState.NO_ACTIVE_MATCH

    first = parser.matches["match_1"]
    assert first.total_kills == 0
    assert first.players == []
    assert first.kills == {}

    second = parser.matches["match_2"]
    assert second.total_kills == 6
    assert second.players == ["Dono da Bola", "Isgalamido"]
    # Two world deaths before any kill are floored at zero, the self-kill counts
    assert second.kills == {"Isgalamido": 3, "Dono da Bola": 0}
    assert second.kills_by_means == {"MOD_TRIGGER_HURT": 3, "MOD_ROCKET_SPLASH": 3}
    assert parser.summary.malformed_lines == 0
    assert parser.summary.kill_events == 6


def test_world_kill_without_open_match_auto_opens():
    parser = parse(" 0:00 Kill: 1022 2 22: <world> killed Isgalamido by MOD_TRIGGER_HURT\n")

    assert list(parser.matches) == ["match_1"]
    match = parser.matches["match_1"]
    assert match.players == ["Isgalamido"]
    assert match.kills == {"Isgalamido": 0}
    assert match.kills_by_means == {"MOD_TRIGGER_HURT": 1}
    assert match.total_kills == 1


def test_two_railgun_kills():
    parser = parse(
        " 1:00 Kill: 3 2 10: Isgalamido killed Dono da Bola by MOD_RAILGUN\n"
        " 1:05 Kill: 3 4 10: Isgalamido killed Zeh by MOD_RAILGUN\n"
    )

    match = parser.matches["match_1"]
    assert match.players == ["Dono da Bola", "Isgalamido", "Zeh"]
    assert match.kills == {"Isgalamido": 2, "Dono da Bola": 0, "Zeh": 0}


def test_second_init_game_without_exit_splits_matches():
    parser = parse(
        " 0:00 InitGame: \\mapname\\q3dm17\n"
        " 0:10 Kill: 2 3 10: Isgalamido killed Zeh by MOD_RAILGUN\n"
        " 0:20 InitGame: \\mapname\\q3dm6\n"
        " 0:30 Kill: 3 2 6: Zeh killed Isgalamido by MOD_ROCKET\n"
        " 0:40 Kill: 3 2 6: Zeh killed Isgalamido by MOD_ROCKET\n"
    )

    assert list(parser.matches) == ["match_1", "match_2"]
    first, second = parser.matches["match_1"], parser.matches["match_2"]
    assert first.total_kills == 1
    assert first.kills == {"Zeh": 0, "Isgalamido": 1}
    assert second.total_kills == 2
    assert second.kills == {"Isgalamido": 0, "Zeh": 2}


def test_identity_resets_between_matches():
    parser = parse(
        " 0:00 InitGame: \\mapname\\q3dm17\n"
        " 0:01 ClientUserinfoChanged: 2 n\\Isgalamido\\t\\0\n"
        " 0:02 Exit: Fraglimit hit.\n"
        " 0:03 InitGame: \\mapname\\q3dm17\n"
        " 0:04 ClientUserinfoChanged: 2 n\\Mocinha\\t\\0\n"
        " 0:05 Kill: 2 1022 22: Mocinha killed <world> by MOD_FALLING\n"
        " 0:06 ShutdownGame:\n"
    )

    assert parser.matches["match_1"].players == ["Isgalamido"]
    second = parser.matches["match_2"]
    assert second.players == ["Mocinha"]
    assert second.kills == {"Mocinha": 1}


def test_name_variants_resolve_to_one_player():
    parser = parse(
        " 0:00 InitGame: \\mapname\\q3dm17\n"
        " 0:01 ClientUserinfoChanged: 4 n\\Zeh!\\t\\0\n"
        " 0:02 Kill: 4 5 10: Zeh! killed Oootsimo by MOD_RAILGUN\n"
        " 0:03 Kill: 9 5 10: Zeh! killed Oootsimo by MOD_RAILGUN\n"
    )

    match = parser.matches["match_1"]
    assert match.players == ["Oootsimo", "Zeh"]
    assert match.kills == {"Zeh": 2, "Oootsimo": 0}


def test_rename_keeps_old_kills_under_old_name():
    parser = parse(
        " 0:00 InitGame: \\mapname\\q3dm17\n"
        " 0:01 ClientUserinfoChanged: 2 n\\Dono da Bola\\t\\0\n"
        " 0:02 Kill: 2 3 10: Dono da Bola killed Zeh by MOD_RAILGUN\n"
        " 0:03 ClientUserinfoChanged: 2 n\\Mocinha\\t\\0\n"
        " 0:04 Kill: 2 3 10: Mocinha killed Zeh by MOD_RAILGUN\n"
    )

    match = parser.matches["match_1"]
    assert match.players == ["Dono da Bola", "Mocinha", "Zeh"]
    assert match.kills == {"Dono da Bola": 1, "Zeh": 0, "Mocinha": 1}


def test_malformed_lines_are_reported_and_skipped():
    diagnostics = []
    parser = GamesLogParser(on_diagnostic=diagnostics.append)
    parser.parse_lines([
        " 0:00 InitGame: \\mapname\\q3dm17\n",
        "complete garbage\n",
        " 0:01 Kill: 2 3 MOD: Isgalamido killed Zeh by MOD_RAILGUN\n",
        " 0:02 Kill: 2 3 10 Isgalamido killed Zeh by MOD_RAILGUN\n",
        " 0:03 ClientUserinfoChanged: x n\\Zeh\\t\\0\n",
        " 0:04 Kill: 2 3 10: Isgalamido killed Zeh by MOD_RAILGUN\n",
        "\n",
    ])

    assert len(diagnostics) == 4
    assert diagnostics[0].startswith("Could not parse line 2")
    assert diagnostics[1].startswith("Error processing line 3")
    assert parser.summary.malformed_lines == 4
    assert parser.summary.skipped_lines == 1
    assert parser.summary.parsed_lines == 2
    assert len(parser.summary.malformed_samples) == 4

    match = parser.matches["match_1"]
    assert match.total_kills == 1
    assert match.kills == {"Zeh": 0, "Isgalamido": 1}


def test_process_line_returns_typed_error():
    parser = GamesLogParser(on_diagnostic=lambda message: None)

    error = parser.process_line(" 0:01 Kill: 2 x 10: Isgalamido killed Zeh by MOD_RAILGUN", 1)

    assert error.kind is ParseErrorKind.INVALID_NUMERIC_FIELD


def test_finalized_match_is_frozen():
    parser = parse(" 0:00 Kill: 2 3 10: Isgalamido killed Zeh by MOD_RAILGUN\n")
    match = parser.matches["match_1"]

    assert match.finalized
    with pytest.raises(RuntimeError):
        match.add_player("Late Joiner")


def test_match_properties_hold_for_sample_log():
    parser = parse(SAMPLE_LOG + " 0:00 Kill: 1022 1022 22: <world> killed <world> by MOD_TRIGGER_HURT\n")

    for match in parser.matches.values():
        assert "<world>" not in match.players
        assert "<world>" not in match.kills
        assert sum(match.kills_by_means.values()) == match.total_kills
        assert all(kills >= 0 for kills in match.kills.values())
        assert set(match.kills) <= set(match.players)
        assert match.players == sorted(set(match.players))


def test_parse_file_and_debug_output():
    with tempfile.TemporaryDirectory() as tmp_dir:
        log_path = os.path.join(tmp_dir, "games.log")
        debug_path = os.path.join(tmp_dir, "skipped.txt")
        with open(log_path, "w", encoding="utf-8") as f:
            f.write(SAMPLE_LOG)
            f.write("not a log line\n")

        parser = GamesLogParser(on_diagnostic=lambda message: None)
        matches = parser.parse_file(log_path, debug_skipped_file=debug_path)

        assert isinstance(matches["match_2"], Match)
        with open(debug_path, encoding="utf-8") as f:
            debug_text = f.read()
        assert "not a log line" in debug_text
        assert "ERROR: malformed_line" in debug_text


def test_parse_file_missing_aborts():
    parser = GamesLogParser()

    with pytest.raises(FileNotFoundError):
        parser.parse_file("/nonexistent/games.log")
    assert parser.matches == {}
    assert parser.summary.total_lines == 0


if __name__ == "__main__":
    raise SystemExit(pytest.main([__file__, "-v"]))
