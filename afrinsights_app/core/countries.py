"""Supported countries and their international calling codes."""

COUNTRY_PHONE_CODES = {
    "Algeria": "+213",
    "Angola": "+244",
    "Benin": "+229",
    "Botswana": "+267",
    "Burkina Faso": "+226",
    "Burundi": "+257",
    "Cameroon": "+237",
    "Cape Verde": "+238",
    "Central African Republic": "+236",
    "Chad": "+235",
    "Comoros": "+269",
    "Democratic Republic of the Congo": "+243",
    "Republic of the Congo": "+242",
    "Djibouti": "+253",
    "Egypt": "+20",
    "Equatorial Guinea": "+240",
    "Eritrea": "+291",
    "Eswatini": "+268",
    "Ethiopia": "+251",
    "Gabon": "+241",
    "Gambia": "+220",
    "Ghana": "+233",
    "Guinea": "+224",
    "Guinea-Bissau": "+245",
    "Ivory Coast": "+225",
    "Kenya": "+254",
    "Lesotho": "+266",
    "Liberia": "+231",
    "Libya": "+218",
    "Madagascar": "+261",
    "Malawi": "+265",
    "Mali": "+223",
    "Mauritania": "+222",
    "Mauritius": "+230",
    "Morocco": "+212",
    "Mozambique": "+258",
    "Namibia": "+264",
    "Niger": "+227",
    "Nigeria": "+234",
    "Rwanda": "+250",
    "São Tomé and Príncipe": "+239",
    "Senegal": "+221",
    "Seychelles": "+248",
    "Sierra Leone": "+232",
    "Somalia": "+252",
    "South Africa": "+27",
    "South Sudan": "+211",
    "Sudan": "+249",
    "Tanzania": "+255",
    "Togo": "+228",
    "Tunisia": "+216",
    "Uganda": "+256",
    "Zambia": "+260",
    "Zimbabwe": "+263",
}

SUPPORTED_COUNTRIES = list(COUNTRY_PHONE_CODES)

COUNTRY_CHOICES = [(name, name) for name in SUPPORTED_COUNTRIES]


def is_supported_country(country: str) -> bool:
    return country in COUNTRY_PHONE_CODES


def calling_code(country: str) -> str | None:
    """Return the calling code for ``country``, or None if unsupported."""
    return COUNTRY_PHONE_CODES.get(country)
