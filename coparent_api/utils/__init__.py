# SPDX-License-Identifier: Apache-2.0

"""
Utility helpers shared by the HTTP routes.
"""
