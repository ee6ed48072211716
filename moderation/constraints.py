"""
Moderation Constraint Helpers

Locates and strips moderation constraints from a query's where clause.

**Terminology:**
- Constraint list: the top-level children of Query.where (AND-connected)
- Where bindings: the ordered SQL parameters that list compiles to
- Moderation constraint: a lookup whose left-hand side is the model's
  status column, whatever the operator (=, IN, ...)
- Scope lookup: a status lookup added by a visibility modifier or the
  default manager (ScopeExact / ScopeIn)

A status lookup counts as a moderation constraint at the top level of an
AND-connected where. Inside nested groups only scope lookups count, so a
caller's own Q(status=...) | Q(...) is left alone while the predicate each
side of `qs_a | qs_b` carries is still found.

Removal keeps the remaining constraints in order and drops exactly the
parameters that belonged to the removed ones. A running binding index advances
by the number of parameters each constraint binds; null checks bind nothing.
"""

import logging

from django.core.exceptions import EmptyResultSet, FullResultSet
from django.db import DEFAULT_DB_ALIAS
from django.db.models.expressions import Col
from django.db.models.lookups import Exact, In, IsNull, Lookup
from django.db.models.sql.datastructures import Join
from django.db.models.sql.where import AND, XOR, WhereNode

from moderation.exceptions import InconsistentBindingError

logger = logging.getLogger(__name__)


class ScopeExact(Exact):
    """status = label, added by a visibility modifier."""
    moderation_scope = True


class ScopeIn(In):
    """status IN (labels), added by a visibility modifier."""
    moderation_scope = True


def scope_lookup(query, model, labels):
    """
    Build the scope lookup restricting a query to the given status labels.

    The lookup targets the query's base table, so it can be passed straight
    to QuerySet.filter().
    """
    field = model._meta.get_field(model.get_status_column())
    lhs = field.get_col(query.get_initial_alias())
    if len(labels) == 1:
        return ScopeExact(lhs, labels[0])
    return ScopeIn(lhs, list(labels))


def is_scope_lookup(constraint):
    return getattr(constraint, 'moderation_scope', False)


def has_joins(query):
    """Return True if the query references any table besides the model's own."""
    return any(
        isinstance(table, Join) and query.alias_refcount.get(alias, 0)
        for alias, table in query.alias_map.items()
    )


def get_moderation_column(query, model):
    """
    Column a moderation constraint must reference.

    Qualified ("table.column") once the query has joins, bare column otherwise.
    """
    if has_joins(query):
        return model.get_qualified_status_column()
    return model._meta.get_field(model.get_status_column()).column


def is_moderation_constraint(constraint, column):
    """Check whether a where child constrains the given status column."""
    if not isinstance(constraint, Lookup):
        return False

    lhs = constraint.lhs
    if not isinstance(lhs, Col):
        return False

    if '.' in column:
        return f"{lhs.alias}.{lhs.target.column}" == column
    return lhs.target.column == column


def find_moderation_constraints(query, model):
    """
    Return the moderation constraints currently active on a query.

    Top-level AND lookups count by column. Nested groups, including each side
    of an OR-combined queryset, only contribute scope lookups; a caller's own
    status filter inside a Q group is not moderation scope. Negated groups are
    never searched.
    """
    where = query.where
    if where.negated:
        return []

    column = get_moderation_column(query, model)
    top_level = where.connector == AND
    found = []
    for child in where.children:
        if isinstance(child, WhereNode):
            found.extend(scope_lookups(child))
        elif is_scope_lookup(child) or (top_level and is_moderation_constraint(child, column)):
            found.append(child)
    return found


def scope_lookups(node):
    """Scope lookups anywhere inside a non-negated where group."""
    if node.negated:
        return []

    found = []
    for child in node.children:
        if isinstance(child, WhereNode):
            found.extend(scope_lookups(child))
        elif is_scope_lookup(child):
            found.append(child)
    return found


def binding_width(constraint, compiler):
    """Number of where parameters a single constraint binds."""
    if isinstance(constraint, IsNull):
        return 0

    try:
        _, params = compiler.compile(constraint)
    except (EmptyResultSet, FullResultSet):
        return 0
    return len(params)


def where_bindings(where, compiler):
    """
    Compile the where clause and return its parameters.

    Returns None when the clause short-circuits (matches nothing or
    everything), since no parameter list exists to line up against.
    """
    if not where.children:
        return []

    try:
        _, params = compiler.compile(where)
    except (EmptyResultSet, FullResultSet):
        return None
    return list(params)


class ConstraintStripper:
    """
    One removal pass over a where tree.

    Records which positions of the original binding list the removed
    constraints held. A group whose parameters are not the plain concatenation
    of its children's (it short-circuits, or compiles to a rewritten form such
    as an emulated XOR) is stripped without position tracking, and the pass is
    marked unverifiable.
    """

    def __init__(self, column, compiler):
        self.column = column
        self.compiler = compiler
        self.stale = set()
        self.removed = 0
        self.verifiable = True

    def matches(self, constraint, top_level):
        if is_scope_lookup(constraint):
            return True
        return top_level and is_moderation_constraint(constraint, self.column)

    def strip(self, node, binding_key=0, top_level=False):
        """Drop matching children of node; return the binding index after it."""
        kept = []
        for constraint in node.children:
            if isinstance(constraint, WhereNode):
                binding_key = self.strip_group(constraint, binding_key)
                kept.append(constraint)
                continue

            width = binding_width(constraint, self.compiler)
            if self.matches(constraint, top_level):
                self.stale.update(range(binding_key, binding_key + width))
                self.removed += 1
            else:
                kept.append(constraint)
            binding_key += width

        node.children = kept
        return binding_key

    def strip_group(self, node, binding_key):
        width = binding_width(node, self.compiler)
        if not scope_lookups(node):
            return binding_key + width

        stale = set(self.stale)
        end = self.strip(node, binding_key)
        if node.connector == XOR or end - binding_key != width:
            self.stale = stale
            self.verifiable = False
        return binding_key + width


def remove_moderation_constraints(query, model, using=DEFAULT_DB_ALIAS):
    """
    Remove every moderation constraint from a query's where clause.

    Mutates the query in place; callers pass a query they own (a clone).
    Calling it on a query with no moderation constraint changes nothing.
    Groups left empty by the removal stay in the tree and match everything.

    Args:
        query: django.db.models.sql.Query
        model: Model class using ModerationMixin
        using: Database alias used to compile parameters

    Returns:
        int: Number of constraints removed

    Raises:
        InconsistentBindingError: If the parameters left behind do not match
            the remaining constraints
    """
    where = query.where
    if where.negated or not where.children:
        return 0
    if not find_moderation_constraints(query, model):
        return 0

    compiler = query.get_compiler(using=using)
    bindings = where_bindings(where, compiler)

    stripped = where.clone()
    stripper = ConstraintStripper(get_moderation_column(query, model), compiler)
    binding_key = stripper.strip(stripped, top_level=where.connector == AND)
    if where.connector == XOR:
        stripper.verifiable = False

    if bindings is not None and stripper.verifiable and binding_key != len(bindings):
        logger.error(
            f"Binding count mismatch on {model.__name__} query: "
            f"constraints bind {binding_key}, where has {len(bindings)}"
        )
        raise InconsistentBindingError(
            f"{model.__name__} where constraints bind {binding_key} parameters "
            f"but the where clause carries {len(bindings)}"
        )

    if bindings is not None and stripper.verifiable:
        expected = [
            value for position, value in enumerate(bindings)
            if position not in stripper.stale
        ]
        remaining = where_bindings(stripped, compiler)
        if remaining is not None and remaining != expected:
            logger.error(
                f"Stale bindings after moderation removal on {model.__name__}: "
                f"expected {expected!r}, got {remaining!r}"
            )
            raise InconsistentBindingError(
                f"{model.__name__} where parameters drifted while removing "
                f"moderation constraints"
            )

    query.where = stripped
    logger.debug(
        f"Removed {stripper.removed} moderation constraint(s) from {model.__name__} query"
    )
    return stripper.removed
