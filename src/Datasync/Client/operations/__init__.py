# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Operation namespace classes for the Datasync client.

- QueryOperations: table queries, accessed via ``client.query``
"""

__all__ = []
