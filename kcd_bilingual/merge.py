"""Rules that join primary and secondary text into one bilingual string.

Each managed file has its own rule. A rule receives the entry id, the
primary text and the secondary/English texts (``None`` when the language
has no value for that id) and returns the text written to the third cell.
"""

from __future__ import annotations

from typing import Callable, Dict, Optional

SEPARATOR_SLASH = "/"
# Escaped line break understood by the game, not a real newline.
SEPARATOR_NEWLINE = "\\n"

# Rendered when neither the secondary nor the English text exists.
MISSING = "MISSING"

MENU_PRIMARY_ONLY_IDS = frozenset(
    {
        "ui_state_health_desc",
        "ui_state_hunger_desc",
        "ui_DerivStat_MaxStamina_desc",
    }
)
ITEM_STEP_ONE_KEEP = ("scatter", "longWeak", "bane")

MergeRule = Callable[[str, str, Optional[str], Optional[str]], str]


def combine(primary: str, secondary: Optional[str], separator: str) -> str:
    if secondary:
        return f"{primary}{separator}{secondary}"
    return primary


def concat_with_fallback(
    primary: str, secondary: Optional[str], english: Optional[str], separator: str
) -> str:
    """Always concatenate: secondary if known, else English, else ``MISSING``."""
    if secondary is not None:
        return f"{primary}{separator}{secondary}"
    return f"{primary}{separator}{english if english is not None else MISSING}"


def merge_menus(entry_id: str, primary: str, secondary: Optional[str], english: Optional[str]) -> str:
    if "ui_helpoverlay" in entry_id:
        return primary
    if "ui_loading" in entry_id or "codex_cont" in entry_id:
        return combine(primary, secondary, SEPARATOR_NEWLINE)
    if len(primary) <= 4 or entry_id in MENU_PRIMARY_ONLY_IDS:
        return primary
    if len(primary) >= 20:
        return combine(primary, secondary, SEPARATOR_NEWLINE)
    return combine(primary, secondary, SEPARATOR_SLASH)


def merge_dialog(entry_id: str, primary: str, secondary: Optional[str], english: Optional[str]) -> str:
    return concat_with_fallback(primary, secondary, english, SEPARATOR_NEWLINE)


def merge_items(entry_id: str, primary: str, secondary: Optional[str], english: Optional[str]) -> str:
    long_step = "step" in entry_id and "_step_1" not in entry_id and len(primary) >= 10
    kept_step_one = "step_1" in entry_id and any(token in entry_id for token in ITEM_STEP_ONE_KEEP)
    if long_step or kept_step_one:
        return primary
    if len(primary) >= 7:
        return combine(primary, secondary, SEPARATOR_NEWLINE)
    return combine(primary, secondary, SEPARATOR_SLASH)


def merge_soul(entry_id: str, primary: str, secondary: Optional[str], english: Optional[str]) -> str:
    length = len(primary)
    if (length <= 7 and primary != MISSING) or (length <= 12 and "stat_" in entry_id):
        return combine(primary, secondary, SEPARATOR_SLASH)
    buff_desc = "buff" in entry_id and "desc" in entry_id and "drunkenness_desc" not in entry_id
    perk_desc = "perk" in entry_id and "_desc" in entry_id
    if buff_desc or perk_desc:
        return combine(primary, secondary, SEPARATOR_NEWLINE)
    return primary


def merge_default(entry_id: str, primary: str, secondary: Optional[str], english: Optional[str]) -> str:
    return concat_with_fallback(primary, secondary, english, SEPARATOR_SLASH)


MERGE_RULES: Dict[str, MergeRule] = {
    "text_ui_menus.xml": merge_menus,
    "text_ui_dialog.xml": merge_dialog,
    "text_ui_items.xml": merge_items,
    "text_ui_soul.xml": merge_soul,
}


def merge_entry(
    file_name: str,
    entry_id: str,
    primary: str,
    secondary: Optional[str],
    english: Optional[str],
) -> str:
    rule = MERGE_RULES.get(file_name, merge_default)
    return rule(entry_id, primary, secondary, english)
