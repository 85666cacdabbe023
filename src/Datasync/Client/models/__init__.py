# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Data models and query types for the Datasync client.

- :class:`~Datasync.Client.models.query.TableQuery`: Fluent, immutable table query builder.
- :class:`~Datasync.Client.models.query.QuerySpec`: Immutable query value.
- :mod:`~Datasync.Client.models.nodes`: Expression nodes and the ``F`` field root.
- :mod:`~Datasync.Client.models.functions`: OData function-call builders.
- :class:`~Datasync.Client.models.page.Page`: One page of results.
- :class:`~Datasync.Client.models.pageable.Pageable`: Lazily fetched result stream.

Note:
    This ``__init__.py`` does NOT import/export models.
    Import directly from the specific module files.
"""

__all__ = []
