"""
======================
Fluent Query Builders.
======================

Two builders share one base (BaseQueryBuilder) for execution, DML, results
and pagination, but build SELECT statements differently:

    - QueryBuilder: structured; fragments go to a ClauseStore and are
      assembled on demand, with {{nestN}} templates for grouped conditions
    - RawQueryBuilder: imperative; each call appends to the SQL string

Pick one per query. The two are not meant to be combined on one instance.

Example:
    >>> from db import QueryBuilder
    >>>
    >>> qb = QueryBuilder()
    >>> page = qb.select('users').where('age', 30, '>').paginate(per_page=20, current_page=2)
    >>> page['pagination']['total_pages']
"""

__version__ = "1.0.0"
__all__ = ['BaseQueryBuilder', 'QueryBuilder', 'RawQueryBuilder']

from .base import BaseQueryBuilder
from .builder import QueryBuilder
from .raw_builder import RawQueryBuilder
