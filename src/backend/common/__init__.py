# SPDX-FileCopyrightText: 2025 robot-visual-perception
#
# SPDX-License-Identifier: MIT
"""Shared configuration and logging for backend services."""

__version__ = "1.0.0"
