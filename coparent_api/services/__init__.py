# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Services package - External integrations and side effects.

Modules are imported directly (``from coparent_api.services.mongodb import
MongoDBService``) so the error handler can depend on ``services.hal`` without
pulling in the storage and broker clients.
"""
