"""Read every language pak concurrently and build one bilingual pak per pair."""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from tqdm import tqdm

from .config import ENGLISH, GeneratorSettings, LanguagePair, load_bilingual_set, required_languages
from .corpus import Corpus
from .errors import (
    BilingualGeneratorError,
    GenerationFailed,
    MissingLanguageDataError,
    TaskJoinError,
    XmlWriteError,
)
from .merge import merge_entry
from .pak import create_pak, read_language
from .tables import EMPTY_TABLE, TextTable, atomic_write, serialize_table

Row = Tuple[str, str, str]


# --- Pair processing ---
def build_rows(
    file_name: str,
    primary_table: TextTable,
    secondary_table: TextTable,
    english_table: TextTable,
) -> List[Row]:
    """One row per primary entry, in the primary table's order."""
    rows: List[Row] = []
    for entry_id, primary_text in primary_table.items():
        combined = merge_entry(
            file_name,
            entry_id,
            primary_text,
            secondary_table.get(entry_id),
            english_table.get(entry_id),
        )
        rows.append((entry_id, primary_text, combined))
    return rows


def prepare_output_dir(settings: GeneratorSettings, pair: LanguagePair) -> Path:
    output_dir = settings.pair_output_dir(pair)
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise XmlWriteError(f"Error creating output directory {output_dir}: {exc}") from exc
    return output_dir


def write_pair_tables(
    pair: LanguagePair,
    corpus: Corpus,
    files: Sequence[str],
    output_dir: Path,
) -> List[Path]:
    generated: List[Path] = []
    for file_name in files:
        primary_table = corpus.table(file_name, pair.primary)
        if primary_table is None:
            logging.warning(
                "No %s data for %s; skipping it for %s.", pair.primary, file_name, pair.dir_name
            )
            continue
        secondary_table = corpus.table(file_name, pair.secondary)
        english_table = corpus.table(file_name, ENGLISH)
        rows = build_rows(
            file_name,
            primary_table,
            secondary_table if secondary_table is not None else EMPTY_TABLE,
            english_table if english_table is not None else EMPTY_TABLE,
        )

        output_path = output_dir / file_name
        try:
            atomic_write(serialize_table(rows), output_path)
        except OSError as exc:
            raise XmlWriteError(f"Error writing XML file {output_path}: {exc}") from exc
        generated.append(output_path)
    return generated


def remove_generated(paths: Sequence[Path]) -> None:
    for path in paths:
        try:
            path.unlink()
        except OSError as exc:
            logging.warning("Failed to delete %s: %s", path, exc)


def process_pair(pair: LanguagePair, corpus: Corpus, settings: GeneratorSettings) -> Path:
    """Write the merged tables of one pair and pack them as ``{primary}_xml.pak``.

    The intermediate XML files are removed only once the pak exists; when
    packing fails they stay next to it for inspection.
    """
    logging.info("Processing %s", pair.dir_name)
    output_dir = prepare_output_dir(settings, pair)
    generated = write_pair_tables(pair, corpus, settings.files, output_dir)
    if not generated:
        logging.warning("No tables were generated for %s.", pair.dir_name)

    pak_path = create_pak(generated, output_dir, pair.primary)
    logging.info("Created %s; cleaning up XML files.", pak_path)
    remove_generated(generated)
    return output_dir


# --- Orchestration ---
def is_ready(pair: LanguagePair, corpus: Corpus) -> bool:
    return all(corpus.has_language(language) for language in pair.languages())


def dispatch_ready_pairs(
    executor: ThreadPoolExecutor,
    pending: Sequence[LanguagePair],
    corpus: Corpus,
    settings: GeneratorSettings,
    processors: Dict[Future, LanguagePair],
) -> List[LanguagePair]:
    """Submit every pending pair whose languages are all read; return the rest."""
    still_pending: List[LanguagePair] = []
    for pair in pending:
        if is_ready(pair, corpus):
            logging.info("Data ready for %s; starting processor.", pair.dir_name)
            processors[executor.submit(process_pair, pair, corpus, settings)] = pair
        else:
            still_pending.append(pair)
    return still_pending


def collect_error(errors: List[BilingualGeneratorError], exc: Exception, task: str) -> None:
    if isinstance(exc, BilingualGeneratorError):
        error = exc
    else:
        error = TaskJoinError(f"{task} crashed: {exc!r}")
        error.__cause__ = exc
    logging.error("%s failed: %s", task, error)
    errors.append(error)


def generate_bilingual_resources(
    settings: GeneratorSettings,
    pairs: Optional[Sequence[LanguagePair]] = None,
    corpus: Optional[Corpus] = None,
) -> List[str]:
    """Build every bilingual pak and return the labels of the produced pairs.

    Languages already present in ``corpus`` are not read again. Raises
    ``GenerationFailed`` when any language, pair or pending pair failed; the
    pairs that did complete are listed on the exception.
    """
    if pairs is None:
        pairs = load_bilingual_set(settings.resolve_pairs_file())
    if not pairs:
        logging.warning("No bilingual pairs to process.")
        return []
    if corpus is None:
        corpus = Corpus()

    languages = [language for language in required_languages(pairs) if language not in corpus]
    logging.info("Required languages to read: %s", ", ".join(languages) or "none")

    try:
        settings.output_root.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise XmlWriteError(f"Failed to create output directory {settings.output_root}: {exc}") from exc

    errors: List[BilingualGeneratorError] = []
    completed: List[str] = []
    processors: Dict[Future, LanguagePair] = {}

    with ThreadPoolExecutor(max_workers=settings.max_workers) as executor:
        pending = dispatch_ready_pairs(executor, pairs, corpus, settings, processors)

        readers = {
            executor.submit(read_language, settings.localization_dir, language, settings.files): language
            for language in languages
        }
        for future in tqdm(
            as_completed(readers),
            total=len(readers),
            desc="Reading languages",
            unit="lang",
            disable=not settings.show_progress,
        ):
            language = readers[future]
            try:
                corpus.publish(language, future.result())
                logging.info("Received data for %s.", language)
            except Exception as exc:
                collect_error(errors, exc, f"Reader for {language}")
            pending = dispatch_ready_pairs(executor, pending, corpus, settings, processors)

        for future in tqdm(
            as_completed(processors),
            total=len(processors),
            desc="Building paks",
            unit="pair",
            disable=not settings.show_progress,
        ):
            pair = processors[future]
            try:
                future.result()
            except Exception as exc:
                collect_error(errors, exc, f"Processor for {pair.dir_name}")
            else:
                completed.append(pair.label)

    for pair in pending:
        missing = [language for language in dict.fromkeys(pair.languages()) if language not in corpus]
        collect_error(errors, MissingLanguageDataError(pair.label, missing), f"Pair {pair.dir_name}")

    if errors:
        logging.error(
            "Finished with %s error(s); %s pair(s) completed.", len(errors), len(completed)
        )
        raise GenerationFailed(
            errors, completed=completed, pending=[pair.label for pair in pending]
        ) from errors[0]

    logging.info("Finished successfully: %s pair(s).", len(completed))
    return completed
