"""
Streamlit implementation of the trainer's Feedback collaborator.
"""

import streamlit as st


class StreamlitFeedback:
    """Toasts for answers, balloons for celebrations."""

    def __init__(self, enabled: bool = True):
        self.enabled = enabled

    def flash_success(self) -> None:
        if self.enabled:
            st.toast("Correct!", icon="✅")

    def flash_error(self) -> None:
        if self.enabled:
            st.toast("Not quite, try again", icon="❌")

    def confetti(self, count: int = 30) -> None:
        # Streamlit has a single balloon animation; count only gates it
        if self.enabled and count > 0:
            st.balloons()
