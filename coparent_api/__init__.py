# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Co-parent custody schedule service.

Resolves which parent has the children on a given day and runs the
schedule change-request workflow between two linked co-parents.
"""

__version__ = "1.0.0"
