# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Utility modules for the Datasync client.

Internal helpers; nothing here is part of the public API.
"""

__all__ = []
