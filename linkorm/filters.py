"""
Filter expressions for ``where=`` arguments of finders and association getters.

    User.find_all(where=(col("age") > 3) & col("name").like("%e%"))
    user.get_tasks(where=~col("name").in_(["a", "b"]))

Plain dicts are accepted too and mean equality on every key.
"""


class FilterExpression:
    """A compilable condition; ``~``, ``&`` and ``|`` build bigger ones."""

    def __invert__(self):
        return NotFilter(self)

    def __and__(self, other):
        return _combine('AND', self, other)

    def __or__(self, other):
        return _combine('OR', self, other)


class ColumnFilter:
    """Reference to a column. Comparing it or calling a predicate yields a FilterExpression."""

    def __init__(self, column_name):
        self.column_name = column_name

    def _compare(self, operator, other):
        return ComparisonFilter(self.column_name, operator, other)

    def __eq__(self, other): return self._compare('=', other)
    def __ne__(self, other): return self._compare('!=', other)
    def __lt__(self, other): return self._compare('<', other)
    def __le__(self, other): return self._compare('<=', other)
    def __gt__(self, other): return self._compare('>', other)
    def __ge__(self, other): return self._compare('>=', other)

    __hash__ = object.__hash__

    def in_(self, values):
        return InFilter(self.column_name, values)

    def not_in(self, values):
        return InFilter(self.column_name, values, negate=True)

    def like(self, pattern):
        return LikeFilter(self.column_name, pattern)

    def ilike(self, pattern):
        return LikeFilter(self.column_name, pattern, case_sensitive=False)

    def is_null(self):
        return NullFilter(self.column_name)

    def is_not_null(self):
        return NullFilter(self.column_name, negate=True)

    def between(self, lower, upper):
        return BetweenFilter(self.column_name, lower, upper)


class ComparisonFilter(FilterExpression):
    def __init__(self, column_name, operator, value):
        self.column_name = column_name
        self.operator = operator
        self.value = value
        # col("a") == col("b") compares two fields
        self.is_field_comparison = isinstance(value, ColumnFilter)


class InFilter(FilterExpression):
    def __init__(self, column_name, values, negate=False):
        self.column_name = column_name
        self.values = list(values)
        self.negate = negate


class LikeFilter(FilterExpression):
    def __init__(self, column_name, pattern, case_sensitive=True):
        self.column_name = column_name
        self.pattern = pattern
        self.case_sensitive = case_sensitive


class NullFilter(FilterExpression):
    def __init__(self, column_name, negate=False):
        self.column_name = column_name
        self.negate = negate


class BetweenFilter(FilterExpression):
    def __init__(self, column_name, lower, upper):
        self.column_name = column_name
        self.lower, self.upper = lower, upper


class NotFilter(FilterExpression):
    def __init__(self, filter_expr):
        self.filter_expr = filter_expr


class CombinedFilter(FilterExpression):
    """``filters`` joined by ``logic`` (AND / OR)."""

    def __init__(self, *filters, logic='AND'):
        logic = logic.upper()
        if logic not in ('AND', 'OR'):
            raise ValueError(f"Unknown filter logic: {logic}")
        self.filters = filters
        self.logic = logic


def _combine(logic, left, right):
    """Join two expressions, flattening operands that already use ``logic``."""
    parts = []
    for expr in (left, right):
        if isinstance(expr, CombinedFilter) and expr.logic == logic:
            parts.extend(expr.filters)
        else:
            parts.append(expr)
    return CombinedFilter(*parts, logic=logic)


def col(column_name):
    return ColumnFilter(column_name)


def and_(*filters):
    return CombinedFilter(*filters, logic='AND')


def or_(*filters):
    return CombinedFilter(*filters, logic='OR')
