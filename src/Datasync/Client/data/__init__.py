# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Translation and transport internals for the Datasync client.

Nothing in this package is part of the public API.
"""

__all__ = []
