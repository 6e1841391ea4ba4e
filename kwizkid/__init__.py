#!/usr/bin/env python3
"""
KwizKid.

State core for a children's educational quiz application: a single-writer
store driven by typed actions, a pure reducer and an effect-producing
middleware pipeline.
"""

__version__ = "0.1.0"
__author__ = "KwizKid Team"
__description__ = "Unidirectional state container for a children's quiz app"
