from utils.status_pill import COLLAPSED, EXPANDED, StatusPill, pill_html
from utils.vocabulary import (
    APPROVAL_STATUS_COLORS,
    DESIGN_STATUS_COLORS,
    NEUTRAL_COLORS,
    ApprovalStatus,
    DesignStatus,
    DriveBrand,
    StageStatus,
    brand_link_color,
    pill_colors,
)


def make_pill(changes):
    return StatusPill("1:design_status", DesignStatus.options(), DESIGN_STATUS_COLORS, on_change=changes.append)


def test_pill_starts_collapsed_and_expands_on_activation():
    pill = make_pill([])
    assert pill.state == COLLAPSED
    pill.activate()
    assert pill.state == EXPANDED


def test_selecting_an_option_collapses_and_emits_it():
    changes = []
    pill = make_pill(changes)
    pill.activate()
    pill.select("Done")
    assert pill.state == COLLAPSED
    assert changes == ["Done"]


def test_outside_interaction_collapses_without_emitting():
    changes = []
    pill = make_pill(changes)
    pill.activate()
    pill.dismiss()
    assert pill.state == COLLAPSED
    assert changes == []


def test_activating_an_open_pill_closes_it():
    pill = make_pill([])
    pill.activate()
    pill.activate()
    assert pill.state == COLLAPSED


def test_pills_track_their_state_independently():
    a, b = make_pill([]), make_pill([])
    a.activate()
    assert a.expanded and not b.expanded


def test_unknown_values_fall_back_to_neutral_colours():
    assert pill_colors("Pending", DESIGN_STATUS_COLORS) == DESIGN_STATUS_COLORS["Pending"]
    assert pill_colors("Archived", DESIGN_STATUS_COLORS) == NEUTRAL_COLORS
    assert pill_colors(None, APPROVAL_STATUS_COLORS) == NEUTRAL_COLORS
    assert NEUTRAL_COLORS == ("#333333", "#FFFFFF")


def test_pill_html_uses_colours_and_escapes_label():
    markup = pill_html("<b>", DESIGN_STATUS_COLORS)
    assert "&lt;b&gt;" in markup
    assert "#333333" in markup
    assert "#FFA600" in pill_html("Pending", DESIGN_STATUS_COLORS)


def test_vocabularies_parse_unknown_values_to_unknown():
    assert DesignStatus("Working") is DesignStatus.WORKING
    assert DesignStatus("Archived") is DesignStatus.UNKNOWN
    assert DriveBrand(None) is DriveBrand.UNKNOWN
    assert ApprovalStatus("Approved") == "Approved"


def test_options_exclude_unknown():
    assert DriveBrand.options() == ["LL", "SB", "ST", "TB", "CB", "CBSB", "HAN", "NON"]
    assert StageStatus.options() == ["Pending", "Hold", "Done"]
    assert ApprovalStatus.options() == ["Approved", "Pending"]
    assert not DesignStatus.is_valid("Unknown")


def test_brand_link_colour_falls_back_to_unassigned():
    assert brand_link_color("SB") == "#D70000"
    assert brand_link_color("XYZ") == "#FFFFFF"
