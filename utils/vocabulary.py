# designflow/utils/vocabulary.py
"""Closed vocabularies for the outlet status columns and the colours used to draw them."""
from collections import namedtuple
from enum import Enum


class Vocabulary(str, Enum):
    """Base for the status enums. Values outside the vocabulary parse to UNKNOWN instead of failing."""

    @classmethod
    def _missing_(cls, value):
        return cls.UNKNOWN

    @classmethod
    def options(cls):
        return [member.value for member in cls if member is not cls.UNKNOWN]

    @classmethod
    def is_valid(cls, value):
        return value in cls.options()


class DriveBrand(Vocabulary):
    LL = "LL"
    SB = "SB"
    ST = "ST"
    TB = "TB"
    CB = "CB"
    CBSB = "CBSB"
    HAN = "HAN"
    NON = "NON"
    UNKNOWN = "Unknown"


class DesignStatus(Vocabulary):
    HOLD = "Hold"
    WORKING = "Working"
    PENDING = "Pending"
    CANCELED = "Canceled"
    DONE = "Done"
    UNKNOWN = "Unknown"


class StageStatus(Vocabulary):
    """Shared by the submission, BOQ and quotation columns."""
    PENDING = "Pending"
    HOLD = "Hold"
    DONE = "Done"
    UNKNOWN = "Unknown"


class ApprovalStatus(Vocabulary):
    APPROVED = "Approved"
    PENDING = "Pending"
    UNKNOWN = "Unknown"


PillColors = namedtuple("PillColors", ["bg", "text"])

NEUTRAL_COLORS = PillColors("#333333", "#FFFFFF")

DRIVE_BRAND_COLORS = {
    "LL": PillColors("#FFC300", "#000000"),
    "SB": PillColors("#D70000", "#FFFFFF"),
    "ST": PillColors("#FF4400", "#000000"),
    "TB": PillColors("#0022FF", "#FFFFFF"),
    "CB": PillColors("#009428", "#FFFFFF"),
    "CBSB": PillColors("#948300", "#FFFFFF"),
    "HAN": PillColors("#FFA600", "#000000"),
    "NON": PillColors("#575753", "#FFFFFF"),
}

# Text colour for the RT Code / Outlet Name cells of a row
DRIVE_BRAND_LINK_COLORS = {
    "LL": "#FFC300",
    "SB": "#D70000",
    "ST": "#FF4400",
    "TB": "#0022FF",
    "CB": "#009428",
    "CBSB": "#948300",
    "HAN": "#FFA600",
    "NON": "#FFFFFF",
}

DESIGN_STATUS_COLORS = {
    "Hold": PillColors("#333333", "#FFFFFF"),
    "Working": PillColors("#00433C", "#00ECFD"),
    "Pending": PillColors("#3C1D08", "#FFA600"),
    "Canceled": PillColors("#460000", "#FF0000"),
    "Done": PillColors("#082C14", "#00FF7B"),
}

STAGE_STATUS_COLORS = {
    "Pending": PillColors("#3C1D08", "#FFA600"),
    "Hold": PillColors("#333333", "#FFFFFF"),
    "Done": PillColors("#082C14", "#00FF7B"),
}

APPROVAL_STATUS_COLORS = {
    "Approved": PillColors("#082C14", "#00FF7B"),
    "Pending": PillColors("#3C1D08", "#FFA600"),
}


def pill_colors(value, color_map):
    """Colour pair for a value, or the neutral pair when the map has no entry for it."""
    return color_map.get(value, NEUTRAL_COLORS)


def brand_link_color(brand):
    return DRIVE_BRAND_LINK_COLORS.get(brand, DRIVE_BRAND_LINK_COLORS["NON"])


# Filter dimension -> outlet column, label, vocabulary and colours.
# The order here is the column order of the table and the filter dialog.
StatusField = namedtuple("StatusField", ["dimension", "column", "label", "vocabulary", "colors"])

STATUS_FIELDS = [
    StatusField("brand", "drive_brand", "Drive Brand", DriveBrand, DRIVE_BRAND_COLORS),
    StatusField("design", "design_status", "Design Status", DesignStatus, DESIGN_STATUS_COLORS),
    StatusField("submission", "design_submission", "Submission", StageStatus, STAGE_STATUS_COLORS),
    StatusField("boq", "design_boq", "BOQ", StageStatus, STAGE_STATUS_COLORS),
    StatusField("quotation", "design_quotation", "Quotation", StageStatus, STAGE_STATUS_COLORS),
    StatusField("approval", "approval_status", "Approval", ApprovalStatus, APPROVAL_STATUS_COLORS),
]

FIELDS_BY_DIMENSION = {f.dimension: f for f in STATUS_FIELDS}
FIELDS_BY_COLUMN = {f.column: f for f in STATUS_FIELDS}
