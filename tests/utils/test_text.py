import pytest

from app.utils.text import (
    estimate_reading_time,
    extract_excerpt,
    generate_slug,
    is_valid_slug,
)


@pytest.mark.parametrize(
    "title,slug",
    [
        ("Hello World", "hello-world"),
        ("  Cloud & DevOps: 2025 Edition!  ", "cloud-devops-2025-edition"),
        ("snake_case_title", "snake-case-title"),
        ("--Already--hyphenated--", "already-hyphenated"),
        ("Café déjà vu", "caf-dj-vu"),
        ("!!!", ""),
    ],
)
def test_generate_slug(title, slug):
    assert generate_slug(title) == slug


def test_generated_slugs_are_valid():
    assert is_valid_slug(generate_slug("Some Title, With Punctuation."))


@pytest.mark.parametrize(
    "slug,valid",
    [
        ("hello-world", True),
        ("a1", True),
        ("Hello", False),
        ("-leading", False),
        ("double--hyphen", False),
        ("", False),
    ],
)
def test_is_valid_slug(slug, valid):
    assert is_valid_slug(slug) is valid


def test_reading_time():
    assert estimate_reading_time("word " * 200) == 1
    assert estimate_reading_time("word " * 201) == 2
    assert estimate_reading_time("") == 1


def test_excerpt_short_content_is_untouched():
    assert extract_excerpt("<p>Short.</p>") == "Short."


def test_excerpt_cuts_at_sentence_end():
    content = "First sentence is here. " + "x" * 30 + ". " + "y" * 200
    excerpt = extract_excerpt(content, max_length=80)
    assert excerpt == "First sentence is here. " + "x" * 30 + "."


def test_excerpt_appends_ellipsis_without_late_sentence_end():
    content = "Hi. " + "z" * 200
    excerpt = extract_excerpt(content, max_length=50)
    assert excerpt == content[:50] + "..."
