# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of CheckX Engine.
#
# CheckX Engine is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""
CheckX Core Engine
==================

Misinformation analysis for short social-media posts.
"""

__version__ = "0.3.0"

# Versioning for stored analyses (reproducibility).
# When changing prompts/strategy, bump these strings.
PROMPT_VERSION = "checkx_detector_v2"
EVIDENCE_STRATEGY_VERSION = "newsdata_overlap_v1"
