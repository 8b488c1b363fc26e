# designflow/utils/status_pill.py
"""
Status-pill control: a coloured label that expands into its vocabulary and reports the pick.

StatusPill is the plain state machine (collapsed <-> expanded) so it can be driven without
Streamlit; render_status_pill() draws one and keeps it in st.session_state across reruns.
"""
import html

import streamlit as st

from utils.interaction import mark_interaction, touched_control
from utils.vocabulary import pill_colors

COLLAPSED = "collapsed"
EXPANDED = "expanded"
PILL_STATE_PREFIX = "pill:"


class StatusPill:
    def __init__(self, key, options, color_map, on_change=None):
        self.key = key
        self.options = list(options)
        self.color_map = color_map
        self.on_change = on_change
        self.state = COLLAPSED

    @property
    def expanded(self):
        return self.state == EXPANDED

    def activate(self):
        """Clicking the label opens the list, or closes it again if it is already open."""
        self.state = COLLAPSED if self.expanded else EXPANDED

    def select(self, option):
        self.state = COLLAPSED
        if self.on_change is not None:
            self.on_change(option)

    def dismiss(self):
        """Interaction anywhere outside the control."""
        self.state = COLLAPSED


def pill_html(value, color_map):
    colors = pill_colors(value, color_map)
    return (
        f'<span style="background-color:{colors.bg};color:{colors.text};'
        f'padding:2px 12px;border-radius:9999px;font-size:0.85rem;font-weight:500;white-space:nowrap">'
        f'{html.escape(str(value))}</span>'
    )


def _on_activate(pill):
    mark_interaction(pill.key)
    pill.activate()


def _on_select(pill, option):
    mark_interaction(pill.key)
    pill.select(option)


def render_status_pill(key, current, options, color_map, on_change):
    """
    Draws the pill for `current`. `on_change(option)` runs from the option button's callback.
    A missing or unknown `current` is shown as-is with the neutral colours.
    """
    state_key = f"{PILL_STATE_PREFIX}{key}"
    pill = st.session_state.get(state_key)
    if pill is None:
        pill = StatusPill(key, options, color_map, on_change)
        st.session_state[state_key] = pill
    else:
        # Row ids and callbacks can change between reruns
        pill.options, pill.color_map, pill.on_change = list(options), color_map, on_change

    if pill.expanded and touched_control() != key:
        pill.dismiss()

    label = current if isinstance(current, str) and current else "Unknown"
    badge_col, toggle_col = st.columns([4, 1], gap="small", vertical_alignment="center")
    badge_col.markdown(pill_html(label, color_map), unsafe_allow_html=True)
    toggle_col.button("▴" if pill.expanded else "▾", key=f"{state_key}:toggle", type="tertiary", on_click=_on_activate, args=(pill,))

    if pill.expanded:
        with st.container(border=True):
            for option in pill.options:
                option_col, pick_col = st.columns([4, 1], gap="small", vertical_alignment="center")
                option_col.markdown(pill_html(option, color_map), unsafe_allow_html=True)
                pick_col.button("✓", key=f"{state_key}:option:{option}", type="tertiary", help=f"Set to {option}",
                                on_click=_on_select, args=(pill, option))
    return pill
