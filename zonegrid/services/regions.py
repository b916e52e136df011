"""
Region Normalization

Maps free-text governorate names (English, Arabic, common transliterations)
to canonical governorate codes.

The alias table is an ordered tuple and is walked top to bottom; the first
entry with an alias contained in the input wins. Aliases can overlap, so the
authored order is part of the behaviour. Use ``find_alias_collisions`` to
list overlapping aliases instead of reordering entries.
"""

import logging

logger = logging.getLogger(__name__)


# (code, English label, Arabic label)
GOVERNORATES = (
    ('cairo', 'Cairo', 'القاهرة'),
    ('giza', 'Giza', 'الجيزة'),
    ('alexandria', 'Alexandria', 'الإسكندرية'),
    ('qalyubia', 'Qalyubia', 'القليوبية'),
    ('dakahlia', 'Dakahlia', 'الدقهلية'),
    ('red_sea', 'Red Sea', 'البحر الأحمر'),
    ('beheira', 'Beheira', 'البحيرة'),
    ('fayoum', 'Fayoum', 'الفيوم'),
    ('gharbia', 'Gharbia', 'الغربية'),
    ('ismailia', 'Ismailia', 'الإسماعيلية'),
    ('monufia', 'Monufia', 'المنوفية'),
    ('minya', 'Minya', 'المنيا'),
    ('new_valley', 'New Valley', 'الوادي الجديد'),
    ('north_sinai', 'North Sinai', 'شمال سيناء'),
    ('port_said', 'Port Said', 'بورسعيد'),
    ('sharqia', 'Sharqia', 'الشرقية'),
    ('sohag', 'Sohag', 'سوهاج'),
    ('south_sinai', 'South Sinai', 'جنوب سيناء'),
    ('damietta', 'Damietta', 'دمياط'),
    ('kafr_el_sheikh', 'Kafr El Sheikh', 'كفر الشيخ'),
    ('matrouh', 'Matrouh', 'مطروح'),
    ('luxor', 'Luxor', 'الأقصر'),
    ('qena', 'Qena', 'قنا'),
    ('asyut', 'Asyut', 'أسيوط'),
    ('beni_suef', 'Beni Suef', 'بني سويف'),
    ('aswan', 'Aswan', 'أسوان'),
    ('suez', 'Suez', 'السويس'),
)

# Transliterations the labels above do not cover. Checked after the labels.
TRANSLITERATIONS = (
    ('alexandria', ('aleksandria', 'alex')),
    ('giza', ('gizah',)),
    ('dakahlia', ('daqahlia', 'ad daqahliyah')),
    ('red_sea', ('al bahr al ahmar',)),
    ('beheira', ('behira', 'al buhayrah')),
    ('fayoum', ('faiyum', 'fayum', 'al fayyum')),
    ('gharbia', ('gharbiya', 'al gharbiyah')),
    ('ismailia', ('ismailiya', 'al ismaliyah')),
    ('monufia', ('menoufia', 'minufiya')),
    ('minya', ('minia', 'al minya')),
    ('qalyubia', ('qaliubiya', 'al qalyubiyah')),
    ('new_valley', ('al wadi al jadid', 'el wadi el gedid')),
    ('north_sinai', ('shamal sina',)),
    ('port_said', ("bur sa'id",)),
    ('sharqia', ('sharqiya', 'ash sharqiyah')),
    ('sohag', ('suhag',)),
    ('south_sinai', ('janub sina',)),
    ('damietta', ('dumiyat',)),
    ('kafr_el_sheikh', ('kafr ash sheikh', 'kafr el-shaykh')),
    ('matrouh', ('matruh', 'marsa matrouh', 'marsamatruh')),
    ('luxor', ('al uqsur',)),
    ('qena', ('qina',)),
    ('asyut', ('assiut', 'asuyt')),
    ('beni_suef', ('bani suwayf',)),
    ('aswan', ('aswan governorate',)),
    ('suez', ('as suways',)),
)


def _build_alias_table():
    table = []
    for code, label_en, label_ar in GOVERNORATES:
        aliases = [code]
        spaced = code.replace('_', ' ')
        for alias in (spaced, label_en.lower(), label_ar):
            if alias not in aliases:
                aliases.append(alias)
        table.append((code, tuple(aliases)))
    table.extend(TRANSLITERATIONS)
    return tuple(table)


GOVERNORATE_ALIASES = _build_alias_table()

GOVERNORATE_LABELS = {code: label_en for code, label_en, _ in GOVERNORATES}

SUPPORTED_GOVERNORATES = frozenset(('cairo', 'giza', 'alexandria', 'qalyubia'))


def normalize_governorate(raw, table=GOVERNORATE_ALIASES):
    """Return the canonical governorate code for ``raw``, or None."""
    if not isinstance(raw, str):
        return None
    value = raw.strip().lower()
    if not value:
        return None

    for code, aliases in table:
        if any(alias in value for alias in aliases):
            return code
    return None


def is_supported_governorate(code):
    return bool(code) and code in SUPPORTED_GOVERNORATES


def governorate_label(code):
    return GOVERNORATE_LABELS.get(code, code)


def find_alias_collisions(table=GOVERNORATE_ALIASES):
    """List aliases that appear inside a later alias of a different code.

    Each item is ``(code, alias, shadowed_code, shadowed_alias)``. ``code``
    comes first in the table and therefore wins for any input containing
    ``shadowed_alias``.
    """
    collisions = []
    for i, (code, aliases) in enumerate(table):
        for other_code, other_aliases in table[i + 1:]:
            if other_code == code:
                continue
            for alias in aliases:
                for other_alias in other_aliases:
                    if alias in other_alias:
                        collisions.append((code, alias, other_code, other_alias))
    return collisions


def log_alias_collisions():
    for code, alias, other_code, other_alias in find_alias_collisions():
        logger.warning("Alias %r of %s shadows %r of %s", alias, code, other_alias, other_code)
