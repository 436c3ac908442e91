import logging
import threading
import xml.etree.ElementTree as ET

import pytest

from kcd_bilingual import generator
from kcd_bilingual.config import LanguagePair
from kcd_bilingual.corpus import Corpus
from kcd_bilingual.errors import (
    GenerationFailed,
    MissingLanguageDataError,
    PakCreationError,
    PakExtractionError,
    TaskJoinError,
)
from kcd_bilingual.generator import (
    build_rows,
    generate_bilingual_resources,
    prepare_output_dir,
    process_pair,
)

from .conftest import entries_xml, read_pak, write_pak

DIALOG = "text_ui_dialog.xml"
MENUS = "text_ui_menus.xml"


def rows_of(data):
    return [[cell.text or "" for cell in row] for row in ET.fromstring(data)]


@pytest.fixture
def corpus():
    corpus = Corpus()
    corpus.publish(
        "Czech",
        {
            DIALOG: {"greet_02": "Nazdar", "greet_01": "Dobrý den", "greet_03": "Sbohem"},
            MENUS: {"ui_inventory": "Inventář", "ui_ok": "OK"},
        },
    )
    corpus.publish(
        "English",
        {
            DIALOG: {"greet_01": "Good day", "greet_02": "Hi", "greet_03": "Farewell"},
            MENUS: {"ui_inventory": "Inventory", "ui_ok": "OK"},
        },
    )
    corpus.publish("German", {DIALOG: {"greet_01": "Guten Tag"}})
    return corpus


def test_build_rows_follow_primary_order():
    rows = build_rows(DIALOG, {"b": "B", "a": "A"}, {"a": "x"}, {})
    assert [row[0] for row in rows] == ["b", "a"]
    assert rows == [("b", "B", "B\\nMISSING"), ("a", "A", "A\\nx")]


def test_process_pair_writes_pak_and_removes_xml(settings, corpus):
    output_dir = process_pair(LanguagePair("Czech", "English"), corpus, settings)

    assert output_dir == settings.working_dir / "bilingual_xml" / "Czech + English" / "Localization"
    assert sorted(path.name for path in output_dir.iterdir()) == ["Czech_xml.pak"]

    members = read_pak(output_dir / "Czech_xml.pak")
    assert set(members) == {DIALOG, MENUS}
    assert rows_of(members[DIALOG]) == [
        ["greet_02", "Nazdar", "Nazdar\\nHi"],
        ["greet_01", "Dobrý den", "Dobrý den\\nGood day"],
        ["greet_03", "Sbohem", "Sbohem\\nFarewell"],
    ]
    assert rows_of(members[MENUS]) == [
        ["ui_inventory", "Inventář", "Inventář/Inventory"],
        ["ui_ok", "OK", "OK"],
    ]


def test_missing_secondary_table_falls_back(settings, corpus):
    output_dir = process_pair(LanguagePair("Czech", "German"), corpus, settings)
    members = read_pak(output_dir / "Czech_xml.pak")

    assert rows_of(members[DIALOG]) == [
        ["greet_02", "Nazdar", "Nazdar\\nHi"],
        ["greet_01", "Dobrý den", "Dobrý den\\nGuten Tag"],
        ["greet_03", "Sbohem", "Sbohem\\nFarewell"],
    ]
    # German has no menus table at all.
    assert rows_of(members[MENUS]) == [["ui_inventory", "Inventář", "Inventář"], ["ui_ok", "OK", "OK"]]


def test_missing_primary_table_skips_file(settings, corpus, caplog):
    with caplog.at_level(logging.WARNING):
        output_dir = process_pair(LanguagePair("German", "Czech"), corpus, settings)
    members = read_pak(output_dir / "German_xml.pak")
    assert list(members) == [DIALOG]
    assert rows_of(members[DIALOG]) == [["greet_01", "Guten Tag", "Guten Tag\\nDobrý den"]]
    assert MENUS in caplog.text


def test_output_dir_setup_is_idempotent(settings):
    pair = LanguagePair("Czech", "English")
    first = prepare_output_dir(settings, pair)
    (first / "keep.txt").write_text("x")
    second = prepare_output_dir(settings, pair)
    assert first == second
    assert [path.name for path in second.iterdir()] == ["keep.txt"]


def test_pak_failure_leaves_xml_for_inspection(settings, corpus, monkeypatch):
    def broken_pak(files, output_dir, language):
        raise PakCreationError(output_dir / f"{language}_xml.pak", "disk full")

    monkeypatch.setattr(generator, "create_pak", broken_pak)
    with pytest.raises(PakCreationError):
        process_pair(LanguagePair("Czech", "English"), corpus, settings)

    output_dir = settings.pair_output_dir(LanguagePair("Czech", "English"))
    assert sorted(path.name for path in output_dir.iterdir()) == [DIALOG, MENUS]


# --- full pipeline ---
def write_language(settings, language, dialog, menus=None):
    members = {DIALOG: entries_xml(dialog)}
    if menus is not None:
        members[MENUS] = entries_xml(menus)
    write_pak(settings.localization_dir, language, members)


def test_generate_all_pairs(settings):
    write_language(settings, "English", {"d1": "Hello"}, {"ui_ok": "OK"})
    write_language(settings, "Chineses", {"d1": "你好"}, {"ui_ok": "确定"})
    write_language(settings, "Czech", {"d1": "Ahoj"}, {"ui_ok": "Dobře"})
    pairs = [LanguagePair("Chineses", "English"), LanguagePair("Chineses", "Czech")]

    messages = generate_bilingual_resources(settings, pairs)

    assert sorted(messages) == sorted(pair.label for pair in pairs)
    czech = read_pak(settings.pair_output_dir(pairs[1]) / "Chineses_xml.pak")
    assert rows_of(czech[DIALOG]) == [["d1", "你好", "你好\\nAhoj"]]
    assert rows_of(czech[MENUS]) == [["ui_ok", "确定", "确定"]]


def test_pairs_are_loaded_from_file(settings):
    write_language(settings, "English", {"d1": "Hello"})
    write_language(settings, "Czech", {"d1": "Ahoj"})
    pairs_file = settings.resolve_pairs_file()
    pairs_file.parent.mkdir(parents=True)
    pairs_file.write_text("Czech + English\n", encoding="utf-8")

    assert generate_bilingual_resources(settings) == [LanguagePair("Czech", "English").label]


def test_no_pairs_returns_empty(settings):
    assert generate_bilingual_resources(settings, []) == []


def test_failed_language_blocks_only_its_pairs(settings):
    write_language(settings, "English", {"d1": "Hello"})
    write_language(settings, "Czech", {"d1": "Ahoj"})
    pairs = [
        LanguagePair("Czech", "English"),
        LanguagePair("Klingon", "English"),
        LanguagePair("Czech", "Klingon"),
    ]

    with pytest.raises(GenerationFailed) as excinfo:
        generate_bilingual_resources(settings, pairs)

    failure = excinfo.value
    assert failure.completed == [pairs[0].label]
    assert failure.pending == [pairs[1].label, pairs[2].label]
    assert isinstance(failure.errors[0], PakExtractionError)
    assert failure.errors[0].language == "Klingon"
    missing = [error for error in failure.errors if isinstance(error, MissingLanguageDataError)]
    assert [error.missing for error in missing] == [["Klingon"], ["Klingon"]]
    assert len(failure.errors) == 3
    assert isinstance(failure.__cause__, PakExtractionError)
    assert (settings.pair_output_dir(pairs[0]) / "Czech_xml.pak").exists()
    assert not settings.pair_output_dir(pairs[1]).exists()


def test_missing_english_blocks_every_pair(settings):
    write_language(settings, "Czech", {"d1": "Ahoj"})
    write_language(settings, "German", {"d1": "Hallo"})

    with pytest.raises(GenerationFailed) as excinfo:
        generate_bilingual_resources(settings, [LanguagePair("Czech", "German")])

    assert excinfo.value.completed == []
    assert excinfo.value.errors[-1].missing == ["English"]


def test_processing_failure_is_reported_per_pair(settings, monkeypatch):
    write_language(settings, "English", {"d1": "Hello"})
    write_language(settings, "Czech", {"d1": "Ahoj"})
    write_language(settings, "German", {"d1": "Hallo"})
    real_create_pak = generator.create_pak

    def flaky_pak(files, output_dir, language):
        if language == "German":
            raise PakCreationError(output_dir / "German_xml.pak", "disk full")
        return real_create_pak(files, output_dir, language)

    monkeypatch.setattr(generator, "create_pak", flaky_pak)
    pairs = [LanguagePair("Czech", "English"), LanguagePair("German", "English")]

    with pytest.raises(GenerationFailed) as excinfo:
        generate_bilingual_resources(settings, pairs)

    assert excinfo.value.completed == [pairs[0].label]
    assert excinfo.value.pending == []
    assert [type(error) for error in excinfo.value.errors] == [PakCreationError]


def test_unexpected_crash_becomes_task_join_error(settings, monkeypatch):
    write_language(settings, "English", {"d1": "Hello"})

    def exploding_read(localization_dir, language, files):
        raise RuntimeError("boom")

    monkeypatch.setattr(generator, "read_language", exploding_read)

    with pytest.raises(GenerationFailed) as excinfo:
        generate_bilingual_resources(settings, [LanguagePair("English", "English")])

    errors = excinfo.value.errors
    assert isinstance(errors[0], TaskJoinError)
    assert "boom" in str(errors[0])
    assert isinstance(errors[1], MissingLanguageDataError)


def test_languages_already_in_corpus_are_not_read(settings, monkeypatch):
    corpus = Corpus()
    corpus.publish("English", {DIALOG: {"d1": "Hello"}})
    corpus.publish("Czech", {DIALOG: {"d1": "Ahoj"}})

    def unexpected_read(localization_dir, language, files):
        raise AssertionError(f"{language} should not be read")

    monkeypatch.setattr(generator, "read_language", unexpected_read)

    messages = generate_bilingual_resources(settings, [LanguagePair("Czech", "English")], corpus=corpus)
    assert messages == [LanguagePair("Czech", "English").label]


def test_ready_pair_is_built_while_other_languages_are_still_reading(settings, monkeypatch):
    write_language(settings, "English", {"d1": "Hello"})
    write_language(settings, "Czech", {"d1": "Ahoj"})
    write_language(settings, "German", {"d1": "Hallo"})
    german_released = threading.Event()
    released_before_build = []
    real_read = generator.read_language
    real_process = generator.process_pair

    def slow_german_read(localization_dir, language, files):
        if language == "German" and not german_released.wait(timeout=10):
            raise AssertionError("German reader was never released")
        return real_read(localization_dir, language, files)

    def tracking_process(pair, corpus, settings):
        output_dir = real_process(pair, corpus, settings)
        if pair.primary == "Czech":
            released_before_build.append(german_released.is_set())
            german_released.set()
        return output_dir

    monkeypatch.setattr(generator, "read_language", slow_german_read)
    monkeypatch.setattr(generator, "process_pair", tracking_process)
    pairs = [LanguagePair("Czech", "English"), LanguagePair("German", "English")]

    messages = generate_bilingual_resources(settings, pairs)

    assert released_before_build == [False]
    assert sorted(messages) == sorted(pair.label for pair in pairs)
    assert (settings.pair_output_dir(pairs[1]) / "German_xml.pak").exists()
