"""
TapVocab - Tap-to-build vocabulary trainer.

Packages:
- schemas: Pydantic models for prompts, outcomes and progress
- trainer: Session engine (queue, validators, practice list, rewards)
- viewer: HTML rendering and Streamlit feedback helpers
- utils: Configuration loading
"""

__version__ = "0.3.0"
