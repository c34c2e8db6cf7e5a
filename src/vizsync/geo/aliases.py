"""Free-text country label to reference geometry name reconciliation.

Survey records spell countries however their source did ("USA", "Russian
Federation", "Ivory Coast"); the map geometry uses one fixed name per
feature. ``COUNTRY_ALIASES`` bridges the two. Matching is exact first,
then case-insensitive. Labels that match nothing pass through trimmed but
otherwise unchanged; they simply fail to color a feature later.

Every alias target must be a member of ``REFERENCE_COUNTRY_NAMES`` and no
target may itself be an alias key, which keeps reconciliation idempotent.
"""

from __future__ import annotations

from vizsync.geo.reference import REFERENCE_COUNTRY_NAMES

COUNTRY_ALIASES: dict[str, str] = {
    # United States
    "USA": "United States",
    "US": "United States",
    "U.S.": "United States",
    "U.S.A.": "United States",
    "United States of America": "United States",
    "America": "United States",
    # United Kingdom
    "UK": "United Kingdom",
    "U.K.": "United Kingdom",
    "Great Britain": "United Kingdom",
    "Britain": "United Kingdom",
    "England": "United Kingdom",
    "Scotland": "United Kingdom",
    "Wales": "United Kingdom",
    "Northern Ireland": "United Kingdom",
    # Gulf
    "UAE": "United Arab Emirates",
    "U.A.E.": "United Arab Emirates",
    # Korea
    "Korea, South": "South Korea",
    "Republic of Korea": "South Korea",
    "Korea": "South Korea",
    "Korea, North": "North Korea",
    "DPRK": "North Korea",
    "Democratic People's Republic of Korea": "North Korea",
    # Russia and former Soviet states
    "Russian Federation": "Russia",
    "Moldova, Republic of": "Moldova",
    "Republic of Moldova": "Moldova",
    "Kyrgyz Republic": "Kyrgyzstan",
    # Europe
    "Czech Republic": "Czechia",
    "North Macedonia": "Macedonia",
    "Republic of North Macedonia": "Macedonia",
    "Bosnia and Herzegovina": "Bosnia and Herz.",
    "Bosnia": "Bosnia and Herz.",
    "Holland": "Netherlands",
    "The Netherlands": "Netherlands",
    "Northern Cyprus": "N. Cyprus",
    "Slovak Republic": "Slovakia",
    # Middle East and Asia
    "Türkiye": "Turkey",
    "Turkiye": "Turkey",
    "Iran, Islamic Republic of": "Iran",
    "Islamic Republic of Iran": "Iran",
    "Syrian Arab Republic": "Syria",
    "Viet Nam": "Vietnam",
    "Lao PDR": "Laos",
    "Lao People's Democratic Republic": "Laos",
    "Burma": "Myanmar",
    "Brunei Darussalam": "Brunei",
    "East Timor": "Timor-Leste",
    "Timor Leste": "Timor-Leste",
    "Palestinian Territories": "Palestine",
    "State of Palestine": "Palestine",
    "West Bank and Gaza": "Palestine",
    "Republic of China": "Taiwan",
    "People's Republic of China": "China",
    "PRC": "China",
    "KSA": "Saudi Arabia",
    # Africa
    "Ivory Coast": "Côte d'Ivoire",
    "Cote d'Ivoire": "Côte d'Ivoire",
    "Democratic Republic of the Congo": "Dem. Rep. Congo",
    "DR Congo": "Dem. Rep. Congo",
    "DRC": "Dem. Rep. Congo",
    "Congo, Dem. Rep.": "Dem. Rep. Congo",
    "Republic of the Congo": "Congo",
    "Congo, Rep.": "Congo",
    "Congo-Brazzaville": "Congo",
    "Central African Republic": "Central African Rep.",
    "South Sudan": "S. Sudan",
    "Equatorial Guinea": "Eq. Guinea",
    "Eswatini": "eSwatini",
    "Swaziland": "eSwatini",
    "Western Sahara": "W. Sahara",
    "Tanzania, United Republic of": "Tanzania",
    "United Republic of Tanzania": "Tanzania",
    "The Gambia": "Gambia",
    "Gambia, The": "Gambia",
    # Americas
    "Dominican Republic": "Dominican Rep.",
    "The Bahamas": "Bahamas",
    "Bahamas, The": "Bahamas",
    "Bolivia (Plurinational State of)": "Bolivia",
    "Plurinational State of Bolivia": "Bolivia",
    "Venezuela, Bolivarian Republic of": "Venezuela",
    "Bolivarian Republic of Venezuela": "Venezuela",
    "Falkland Islands": "Falkland Is.",
    "Falkland Islands (Malvinas)": "Falkland Is.",
    "Trinidad & Tobago": "Trinidad and Tobago",
    # Oceania and Antarctic
    "Solomon Islands": "Solomon Is.",
    "French Southern and Antarctic Lands": "Fr. S. Antarctic Lands",
    "French Southern Territories": "Fr. S. Antarctic Lands",
}

# Case-insensitive fallback: lowered alias or reference name -> reference name.
_CASEFOLD_LOOKUP: dict[str, str] = {
    _name.casefold(): _name for _name in REFERENCE_COUNTRY_NAMES
}
for _alias, _target in COUNTRY_ALIASES.items():
    _CASEFOLD_LOOKUP[_alias.casefold()] = _target


def reconcile_country(label: str) -> str:
    """Map a dataset country label onto the reference geometry's name.

    Args:
        label: Free-text country label from a record.

    Returns:
        The canonical feature name when the label is a known alias or a
        case variant of a reference name, otherwise the trimmed label.
    """
    if not label:
        return ""
    text = str(label).strip()
    if text in REFERENCE_COUNTRY_NAMES:
        return text
    target = COUNTRY_ALIASES.get(text)
    if target:
        return target
    return _CASEFOLD_LOOKUP.get(text.casefold(), text)
