from __future__ import annotations

import importlib.resources
import logging
import re
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from .datamodels import Country, NewspaperSource, ReferenceDataset
from .errors import ReferenceDataError

logger = logging.getLogger("newsroom")

SOURCES_PACKAGE = "newsroom_tui.data"
SOURCES_FILE = "front_page_sources.tsv"

# Names for every code in SUPPORTED_COUNTRY_CODES, in English.
COUNTRY_NAMES: Dict[str, str] = {
    "AD": "Andorra",
    "AE": "United Arab Emirates",
    "AF": "Afghanistan",
    "AG": "Antigua & Barbuda",
    "AI": "Anguilla",
    "AL": "Albania",
    "AM": "Armenia",
    "AO": "Angola",
    "AQ": "Antarctica",
    "AR": "Argentina",
    "AS": "American Samoa",
    "AT": "Austria",
    "AU": "Australia",
    "AW": "Aruba",
    "AX": "Åland Islands",
    "AZ": "Azerbaijan",
    "BA": "Bosnia & Herzegovina",
    "BB": "Barbados",
    "BD": "Bangladesh",
    "BE": "Belgium",
    "BF": "Burkina Faso",
    "BG": "Bulgaria",
    "BH": "Bahrain",
    "BI": "Burundi",
    "BJ": "Benin",
    "BL": "St. Barthélemy",
    "BM": "Bermuda",
    "BN": "Brunei",
    "BO": "Bolivia",
    "BQ": "Caribbean Netherlands",
    "BR": "Brazil",
    "BS": "Bahamas",
    "BT": "Bhutan",
    "BV": "Bouvet Island",
    "BW": "Botswana",
    "BY": "Belarus",
    "BZ": "Belize",
    "CA": "Canada",
    "CC": "Cocos (Keeling) Islands",
    "CD": "Congo - Kinshasa",
    "CF": "Central African Republic",
    "CG": "Congo - Brazzaville",
    "CH": "Switzerland",
    "CI": "Côte d’Ivoire",
    "CK": "Cook Islands",
    "CL": "Chile",
    "CM": "Cameroon",
    "CN": "China",
    "CO": "Colombia",
    "CR": "Costa Rica",
    "CU": "Cuba",
    "CV": "Cape Verde",
    "CW": "Curaçao",
    "CX": "Christmas Island",
    "CY": "Cyprus",
    "CZ": "Czechia",
    "DE": "Germany",
    "DJ": "Djibouti",
    "DK": "Denmark",
    "DM": "Dominica",
    "DO": "Dominican Republic",
    "DZ": "Algeria",
    "EC": "Ecuador",
    "EE": "Estonia",
    "EG": "Egypt",
    "EH": "Western Sahara",
    "ER": "Eritrea",
    "ES": "Spain",
    "ET": "Ethiopia",
    "FI": "Finland",
    "FJ": "Fiji",
    "FK": "Falkland Islands",
    "FM": "Micronesia",
    "FO": "Faroe Islands",
    "FR": "France",
    "GA": "Gabon",
    "GB": "United Kingdom",
    "GD": "Grenada",
    "GE": "Georgia",
    "GF": "French Guiana",
    "GG": "Guernsey",
    "GH": "Ghana",
    "GI": "Gibraltar",
    "GL": "Greenland",
    "GM": "Gambia",
    "GN": "Guinea",
    "GP": "Guadeloupe",
    "GQ": "Equatorial Guinea",
    "GR": "Greece",
    "GS": "South Georgia & South Sandwich Islands",
    "GT": "Guatemala",
    "GU": "Guam",
    "GW": "Guinea-Bissau",
    "GY": "Guyana",
    "HK": "Hong Kong SAR China",
    "HM": "Heard & McDonald Islands",
    "HN": "Honduras",
    "HR": "Croatia",
    "HT": "Haiti",
    "HU": "Hungary",
    "ID": "Indonesia",
    "IE": "Ireland",
    "IL": "Israel",
    "IM": "Isle of Man",
    "IN": "India",
    "IO": "British Indian Ocean Territory",
    "IQ": "Iraq",
    "IR": "Iran",
    "IS": "Iceland",
    "IT": "Italy",
    "JE": "Jersey",
    "JM": "Jamaica",
    "JO": "Jordan",
    "JP": "Japan",
    "KE": "Kenya",
    "KG": "Kyrgyzstan",
    "KH": "Cambodia",
    "KI": "Kiribati",
    "KM": "Comoros",
    "KN": "St. Kitts & Nevis",
    "KP": "North Korea",
    "KR": "South Korea",
    "KW": "Kuwait",
    "KY": "Cayman Islands",
    "KZ": "Kazakhstan",
    "LA": "Laos",
    "LB": "Lebanon",
    "LC": "St. Lucia",
    "LI": "Liechtenstein",
    "LK": "Sri Lanka",
    "LR": "Liberia",
    "LS": "Lesotho",
    "LT": "Lithuania",
    "LU": "Luxembourg",
    "LV": "Latvia",
    "LY": "Libya",
    "MA": "Morocco",
    "MC": "Monaco",
    "MD": "Moldova",
    "ME": "Montenegro",
    "MF": "St. Martin",
    "MG": "Madagascar",
    "MH": "Marshall Islands",
    "MK": "North Macedonia",
    "ML": "Mali",
    "MM": "Myanmar (Burma)",
    "MN": "Mongolia",
    "MO": "Macao SAR China",
    "MP": "Northern Mariana Islands",
    "MQ": "Martinique",
    "MR": "Mauritania",
    "MS": "Montserrat",
    "MT": "Malta",
    "MU": "Mauritius",
    "MV": "Maldives",
    "MW": "Malawi",
    "MX": "Mexico",
    "MY": "Malaysia",
    "MZ": "Mozambique",
    "NA": "Namibia",
    "NC": "New Caledonia",
    "NE": "Niger",
    "NF": "Norfolk Island",
    "NG": "Nigeria",
    "NI": "Nicaragua",
    "NL": "Netherlands",
    "NO": "Norway",
    "NP": "Nepal",
    "NR": "Nauru",
    "NU": "Niue",
    "NZ": "New Zealand",
    "OM": "Oman",
    "PA": "Panama",
    "PE": "Peru",
    "PF": "French Polynesia",
    "PG": "Papua New Guinea",
    "PH": "Philippines",
    "PK": "Pakistan",
    "PL": "Poland",
    "PM": "St. Pierre & Miquelon",
    "PN": "Pitcairn Islands",
    "PR": "Puerto Rico",
    "PS": "Palestinian Territories",
    "PT": "Portugal",
    "PW": "Palau",
    "PY": "Paraguay",
    "QA": "Qatar",
    "RE": "Réunion",
    "RO": "Romania",
    "RS": "Serbia",
    "RU": "Russia",
    "RW": "Rwanda",
    "SA": "Saudi Arabia",
    "SB": "Solomon Islands",
    "SC": "Seychelles",
    "SD": "Sudan",
    "SE": "Sweden",
    "SG": "Singapore",
    "SH": "St. Helena",
    "SI": "Slovenia",
    "SJ": "Svalbard & Jan Mayen",
    "SK": "Slovakia",
    "SL": "Sierra Leone",
    "SM": "San Marino",
    "SN": "Senegal",
    "SO": "Somalia",
    "SR": "Suriname",
    "SS": "South Sudan",
    "ST": "São Tomé & Príncipe",
    "SV": "El Salvador",
    "SX": "Sint Maarten",
    "SY": "Syria",
    "SZ": "Eswatini",
    "TC": "Turks & Caicos Islands",
    "TD": "Chad",
    "TF": "French Southern Territories",
    "TG": "Togo",
    "TH": "Thailand",
    "TJ": "Tajikistan",
    "TK": "Tokelau",
    "TL": "Timor-Leste",
    "TM": "Turkmenistan",
    "TN": "Tunisia",
    "TO": "Tonga",
    "TR": "Turkey",
    "TT": "Trinidad & Tobago",
    "TV": "Tuvalu",
    "TW": "Taiwan",
    "TZ": "Tanzania",
    "UA": "Ukraine",
    "UG": "Uganda",
    "UM": "U.S. Outlying Islands",
    "US": "United States",
    "UY": "Uruguay",
    "UZ": "Uzbekistan",
    "VA": "Vatican City",
    "VC": "St. Vincent & Grenadines",
    "VE": "Venezuela",
    "VG": "British Virgin Islands",
    "VI": "U.S. Virgin Islands",
    "VN": "Vietnam",
    "VU": "Vanuatu",
    "WF": "Wallis & Futuna",
    "WS": "Samoa",
    "YE": "Yemen",
    "YT": "Mayotte",
    "ZA": "South Africa",
    "ZM": "Zambia",
    "ZW": "Zimbabwe",
}

_WIDE_GAP = re.compile(r"\s{2,}")


def country_display_name(code: str) -> str:
    """Return a readable country name for an ISO 3166-1 alpha-2 code."""
    if not code:
        return ""
    upper = code.strip().upper()
    return COUNTRY_NAMES.get(upper, upper)


def country_options(codes: Iterable[str]) -> List[Tuple[str, str]]:
    """``("Name (CC)", code)`` pairs sorted by name, for a country selector."""
    named = [(country_display_name(c), c.lower()) for c in codes if c]
    named.sort(key=lambda pair: pair[0].casefold())
    return [(f"{name} ({code.upper()})", code) for name, code in named]


def language_options(languages: Dict[str, str]) -> List[Tuple[str, str]]:
    ordered = sorted(languages.items(), key=lambda item: item[1].casefold())
    return [(f"{name} ({code.upper()})", code) for code, name in ordered]


def _split_record(line: str) -> List[str]:
    parts = line.split("\t")
    if len(parts) < 4:
        parts = _WIDE_GAP.split(line)
    return [p.strip() for p in parts]


def parse_sources(raw_text: str) -> ReferenceDataset:
    """Parse the newspaper listing into an indexed dataset.

    The first non-blank line is a header. Comment lines and records with
    missing fields are skipped rather than rejected, since the listing is
    maintained by hand and tends to pick up stray lines.
    """
    lines = [line for line in raw_text.splitlines() if line.strip()]
    sources: List[NewspaperSource] = []
    countries: Dict[str, Country] = {}

    for line in lines[1:]:
        if line.lstrip().startswith("#"):
            continue
        parts = _split_record(line)
        if len(parts) < 4:
            logger.debug("Skipping short record: %r", line)
            continue
        display_name, country_code, language_code, identifier = parts[:4]
        if not display_name or not country_code or not identifier:
            logger.debug("Skipping incomplete record: %r", line)
            continue
        sources.append(
            NewspaperSource(
                display_name=display_name,
                country_code=country_code,
                language_code=language_code,
                identifier=identifier,
            )
        )
        if country_code not in countries:
            countries[country_code] = Country(
                code=country_code,
                display_name=country_display_name(country_code),
            )

    ordered = sorted(countries.values(), key=lambda c: c.display_name.casefold())
    logger.debug("Parsed %d sources across %d countries", len(sources), len(ordered))
    return ReferenceDataset(countries=tuple(ordered), sources=tuple(sources))


def read_packaged_sources() -> str:
    return (
        importlib.resources.files(SOURCES_PACKAGE)
        .joinpath(SOURCES_FILE)
        .read_text(encoding="utf-8")
    )


class ReferenceDataLoader:
    """Loads the newspaper listing once and keeps it for the process lifetime."""

    def __init__(self, read_text: Optional[Callable[[], str]] = None):
        self._read_text = read_text or read_packaged_sources
        self._dataset: Optional[ReferenceDataset] = None
        self.error: Optional[ReferenceDataError] = None

    @property
    def loaded(self) -> bool:
        return self._dataset is not None

    def load(self) -> ReferenceDataset:
        if self._dataset is not None:
            return self._dataset

        try:
            raw_text = self._read_text()
            if not raw_text:
                raise ReferenceDataError("Could not read newspaper sources")
            self._dataset = parse_sources(raw_text)
        except (OSError, ModuleNotFoundError, UnicodeDecodeError, ReferenceDataError) as e:
            logger.error("Failed to load newspaper sources: %s", e)
            self.error = (
                e if isinstance(e, ReferenceDataError) else ReferenceDataError(str(e))
            )
            self._dataset = ReferenceDataset()
        return self._dataset
