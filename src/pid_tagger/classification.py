"""ISA 5.1 lookup tables and the pure classifiers that consult them.

Every rule used to type, describe, rate and group a tag lives in a table here,
so the tag extractor and the sheet builder only ever call small lookups.
"""

from __future__ import annotations

import re
from typing import Dict, Optional, Sequence, Tuple

from .pipeline import LineNumberInfo, TagCategory

EQUIPMENT_CODES: Dict[str, str] = {
    # Vessels
    "V": "Vessel",
    "T": "Tower/Column",
    "D": "Drum",
    "TK": "Tank",
    # Rotating equipment
    "P": "Pump",
    "K": "Compressor",
    "B": "Blower",
    "F": "Fan",
    "A": "Agitator",
    "M": "Motor",
    # Heat transfer
    "E": "Exchanger",
    "H": "Heater",
    "C": "Cooler",
    "R": "Reactor",
    # Other
    "S": "Separator",
    "FLT": "Filter",
    "MX": "Mixer",
    "Y": "Strainer",
}

ISA_FIRST_LETTERS: Dict[str, str] = {
    "A": "Analysis",
    "B": "Burner/Combustion",
    "C": "Conductivity",
    "D": "Density/Specific Gravity",
    "E": "Voltage",
    "F": "Flow",
    "G": "Gauging/Position",
    "H": "Hand",
    "I": "Current",
    "J": "Power",
    "K": "Time/Schedule",
    "L": "Level",
    "M": "Moisture/Humidity",
    "N": "User Choice",
    "O": "User Choice",
    "P": "Pressure",
    "Q": "Quantity",
    "R": "Radiation",
    "S": "Speed/Frequency",
    "T": "Temperature",
    "U": "Multivariable",
    "V": "Vibration",
    "W": "Weight/Force",
    "X": "Unclassified",
    "Y": "Event/State",
    "Z": "Position/Dimension",
}

ISA_FUNCTION_LETTERS: Dict[str, str] = {
    "A": "Alarm",
    "B": "User Choice",
    "C": "Control",
    "D": "Differential",
    "E": "Element",
    "F": "Ratio",
    "G": "Glass/Gauge",
    "H": "High",
    "I": "Indicate",
    "J": "Scan",
    "K": "Control Station",
    "L": "Light/Low",
    "M": "Middle/Intermediate",
    "N": "User Choice",
    "O": "Orifice",
    "P": "Point/Test",
    "Q": "Integrate/Totalize",
    "R": "Record",
    "S": "Switch",
    "T": "Transmit",
    "U": "Multifunction",
    "V": "Valve",
    "W": "Well",
    "X": "Unclassified",
    "Y": "Relay/Compute",
    "Z": "Driver/Actuator",
}

# A prefix ending in the driver/actuator letter names an actuator, not an instrument.
ACTUATOR_LETTER = "Z"

# Abridged tables echoed on the configuration sheet.
REFERENCE_FIRST_LETTERS: Tuple[str, ...] = ("F", "L", "P", "T")
REFERENCE_FUNCTION_LETTERS: Tuple[str, ...] = ("I", "C", "T", "V")

CONTROL_VALVE_TYPE = "Control Valve"
LINE_TYPE = "Process Line"

LINE_SERVICE_MATERIALS: Dict[str, str] = {
    "PG": "CS",  # Process gas
    "PL": "CS",  # Process liquid
    "CW": "CS",  # Cooling water
    "ST": "CS",  # Steam
    "HC": "SS",  # Hydrocarbon
    "AC": "SS",  # Acid
}
DEFAULT_LINE_MATERIAL = "CS"

CRITICALITY_LEGEND: Dict[str, str] = {
    "A": "Critical - Safety/Environmental Impact",
    "B": "Essential - Production Critical",
    "C": "Important - Quality/Efficiency Impact",
    "D": "Standard - General Service",
    "E": "Non-Critical - Utility Service",
}

# First matching rule wins.
INSTRUMENT_CRITICALITY_RULES: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (("Safety", "Alarm"), "A"),
    (("Control", "Pressure"), "B"),
    (("Temperature", "Flow"), "C"),
    (("Level",), "D"),
)
DEFAULT_CRITICALITY = "E"

INSTRUMENT_SAFETY_RULES: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (("Safety",), "SIL-2"),
    (("Alarm", "Shutdown"), "SIL-1"),
)
NON_SIS = "Non-SIS"

VALVE_CRITICALITY = "B"
SAFETY_VALVE_MARKERS: Tuple[str, ...] = ("PSV", "PRV", "TSV")
SAFETY_VALVE_CLASS = "SIL-1"

EQUIPMENT_CRITICALITY = "TBD"
EQUIPMENT_SAFETY_CLASS = "TBD"

SYSTEM_BY_LETTER: Dict[str, str] = {
    "P": "Pumping System",
    "K": "Compression System",
    "E": "Heat Transfer System",
    "V": "Vessel System",
    "T": "Tower/Column System",
    "F": "Flow System",
    "L": "Level System",
}
DEFAULT_SYSTEM = "Process System"

# (exclusive upper bound, sub-system); numbers past the last bound are auxiliary.
SUBSYSTEM_BUCKETS: Tuple[Tuple[int, str], ...] = (
    (1000, "Utilities"),
    (2000, "Feed System"),
    (3000, "Reaction System"),
    (4000, "Separation System"),
    (5000, "Product System"),
)
AUXILIARY_SUBSYSTEM = "Auxiliary System"
DEFAULT_SUBSYSTEM = "General"

_LEADING_LETTERS = re.compile(r"^([A-Z]+)")
_FIRST_NUMBER = re.compile(r"\d+", re.ASCII)
_LINE_PARTS = re.compile(r"^(\d+)(?:\"|'{1,2})?-([A-Z]+)-(\d+)", re.ASCII)


def leading_letters(tag: str, limit: int = 4) -> str:
    """Return up to ``limit`` letters from the start of a normalized tag."""
    match = _LEADING_LETTERS.match(tag)
    return match.group(1)[:limit] if match else ""


def equipment_prefix(tag: str) -> str:
    return leading_letters(tag, limit=3)


def is_equipment_prefix(tag: str) -> bool:
    return equipment_prefix(tag) in EQUIPMENT_CODES


def is_instrument_prefix(tag: str) -> bool:
    letters = leading_letters(tag)
    if len(letters) < 2 or letters[0] not in ISA_FIRST_LETTERS:
        return False
    return letters[-1] != ACTUATOR_LETTER


def equipment_type(tag: str) -> str:
    return EQUIPMENT_CODES.get(equipment_prefix(tag), "Equipment")


def instrument_type(tag: str) -> str:
    """Decode an ISA letter prefix, e.g. ``PIC`` -> ``Pressure Indicate/Control``."""
    letters = leading_letters(tag)
    if not letters:
        return "Instrument"
    variable = ISA_FIRST_LETTERS.get(letters[0], "Unknown")
    functions = [ISA_FUNCTION_LETTERS[letter] for letter in letters[1:] if letter in ISA_FUNCTION_LETTERS]
    return f"{variable} {'/'.join(functions)}".strip()


def classify(category: TagCategory, tag: str) -> str:
    """Return the human-readable subtype of a normalized tag."""
    if category is TagCategory.EQUIPMENT:
        return equipment_type(tag)
    if category is TagCategory.INSTRUMENT:
        return instrument_type(tag)
    if category is TagCategory.CONTROL_VALVE:
        return CONTROL_VALVE_TYPE
    return LINE_TYPE


def describe(category: TagCategory, tag: str, tag_type: Optional[str] = None) -> str:
    if category is TagCategory.LINE_NUMBER:
        return f"{LINE_TYPE} - {tag}"
    return f"{tag_type or classify(category, tag)} - {tag}"


def line_material(service_code: str) -> str:
    return LINE_SERVICE_MATERIALS.get(service_code, DEFAULT_LINE_MATERIAL)


def parse_line_number(tag: str) -> LineNumberInfo:
    """Split ``6"-PG-10001`` into size, service code, spec number and material."""
    match = _LINE_PARTS.match(tag)
    if not match:
        return LineNumberInfo()
    size, service, spec = match.groups()
    return LineNumberInfo(
        size=f'{size}"',
        service=service,
        spec=spec,
        material=line_material(service),
    )


def _first_rule(text: str, rules: Sequence[Tuple[Tuple[str, ...], str]], default: str) -> str:
    for keywords, value in rules:
        if any(keyword in text for keyword in keywords):
            return value
    return default


def instrument_criticality(tag_type: str) -> str:
    return _first_rule(tag_type, INSTRUMENT_CRITICALITY_RULES, DEFAULT_CRITICALITY)


def instrument_safety_class(tag_type: str) -> str:
    return _first_rule(tag_type, INSTRUMENT_SAFETY_RULES, NON_SIS)


def valve_safety_class(tag: str) -> str:
    if any(marker in tag for marker in SAFETY_VALVE_MARKERS):
        return SAFETY_VALVE_CLASS
    return NON_SIS


def identify_system(tag: str) -> str:
    letters = leading_letters(tag)
    if not letters:
        return DEFAULT_SYSTEM
    return SYSTEM_BY_LETTER.get(letters[0], DEFAULT_SYSTEM)


def identify_subsystem(tag: str) -> str:
    match = _FIRST_NUMBER.search(tag)
    if not match:
        return DEFAULT_SUBSYSTEM
    number = int(match.group(0))
    for upper_bound, subsystem in SUBSYSTEM_BUCKETS:
        if number < upper_bound:
            return subsystem
    return AUXILIARY_SUBSYSTEM
