from __future__ import annotations

import pytest

from zshrc_sections.matcher import (
    extract_core_name,
    find_matching_section,
    normalize_section_name,
    score_match,
)


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("Git Aliases", "gitaliases"),
        ("Node & NPM", "nodeandnpm"),
        ("  DOCKER-compose ", "dockercompose"),
        ("Config", ""),
        ("Misc.", ""),
    ],
)
def test_normalize_section_name(name: str, expected: str):
    assert normalize_section_name(name) == expected


@pytest.mark.parametrize(
    ("normalized", "core"),
    [
        ("gitaliases", "git"),
        ("dockerconfig", "docker"),
        ("kubectlshortcuts", "kubectl"),
        ("aliases", "aliases"),
        ("rust", "rust"),
    ],
)
def test_extract_core_name(normalized: str, core: str):
    assert extract_core_name(normalized) == core


def test_score_match_levels():
    assert score_match("git", "git", "Git") == 100
    assert score_match("gitaliases", "git", "Git") == 90
    assert score_match("kube", "kube", "Kubernetes") == 50
    assert score_match("git", "git", "Digital") == 0
    assert score_match("", "", "Git") == 0


def test_core_match_returns_section_and_end_line():
    match = find_matching_section("# --- Git --- #\nalias g='git'\n", "Git Aliases")

    assert match is not None
    assert match.marker.name == "Git"
    assert match.score == 90
    assert match.end_line == 2


def test_substring_containment_is_not_a_match():
    assert find_matching_section("# --- Digital --- #\nalias d=x\n", "Git") is None


def test_short_core_does_not_prefix_match():
    assert find_matching_section("# --- Google --- #\nalias g=x\n", "Go Aliases") is None


def test_suffix_on_existing_section_still_matches():
    match = find_matching_section("# --- Docker Aliases --- #\nalias d=docker\n", "Docker")

    assert match is not None
    assert match.marker.name == "Docker Aliases"


def test_section_ends_before_next_heading():
    text = "# --- Git --- #\nalias g=git\n\n\n# --- Node --- #\nalias n=node\n"

    match = find_matching_section(text, "Git")

    assert match.end_line == 4


def test_section_ends_before_its_end_marker():
    text = "# --- Git --- #\nalias g=git\n# --- End Git --- #\n\nalias x=y\n"

    match = find_matching_section(text, "Git")

    assert match.end_line == 2


def test_function_boundaries_do_not_end_a_section():
    text = "# [ Tools ]\nfoo() {\n}\nalias a=b\n# [ Git ]\n"

    match = find_matching_section(text, "Tools")

    assert match.end_line == 4


def test_exact_match_beats_core_match():
    match = find_matching_section("# [ Git ]\n# [ Git Aliases ]\n", "Git Aliases")

    assert match.marker.line_number == 2
    assert match.score == 100


def test_ties_go_to_first_heading():
    match = find_matching_section("# [ Git ]\n# section: git\n", "Git")

    assert match.marker.line_number == 1


def test_generic_names_never_match():
    assert find_matching_section("# [ Config ]\nalias a=b\n", "Config") is None


def test_function_names_are_not_candidates():
    assert find_matching_section("mkcd() {\n  mkdir\n}\n", "mkcd") is None


def test_prefix_match_with_long_cores():
    match = find_matching_section("# # Kubernetes\nalias k=kubectl\n", "Kube Aliases")

    assert match is not None
    assert match.score == 50
