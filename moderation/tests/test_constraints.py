"""Constraint removal tests.

Tests detection of moderation constraints and the positional bookkeeping
that keeps the remaining where parameters aligned.
"""

from unittest.mock import patch

from django.db import DEFAULT_DB_ALIAS
from django.test import TestCase

from moderation.constraints import (
    find_moderation_constraints,
    get_moderation_column,
    has_joins,
    remove_moderation_constraints,
)
from moderation.exceptions import InconsistentBindingError
from posts.models import Post

from .fixtures import create_category, create_post, titles


def where_params(query):
    """Compiled where parameters of a query, as a list"""
    compiler = query.get_compiler(using=DEFAULT_DB_ALIAS)
    _, params = compiler.compile(query.where)
    return list(params)


class ConstraintDetectionTest(TestCase):
    """Test how moderation constraints are recognised."""

    def test_membership_constraint_detected(self):
        """Test that the IN form injected by default is detected."""
        query = Post.objects.all().query
        constraints = find_moderation_constraints(query, Post)

        self.assertEqual(len(constraints), 1)
        self.assertEqual(constraints[0].lookup_name, 'in')

    def test_equality_constraint_detected(self):
        """Test that an equality on status is detected."""
        query = Post.objects.with_any_status().filter(status='approved').query
        self.assertEqual(len(find_moderation_constraints(query, Post)), 1)

    def test_other_columns_ignored(self):
        """Test that constraints on ordinary columns are not moderation constraints."""
        query = Post.objects.with_any_status().filter(topic='x', views__gt=3).query
        self.assertEqual(find_moderation_constraints(query, Post), [])

    def test_nested_q_not_detected(self):
        """Test that status inside an OR group is left alone."""
        from django.db.models import Q

        query = Post.objects.with_any_status().filter(
            Q(status='rejected') | Q(topic='x')
        ).query
        self.assertEqual(find_moderation_constraints(query, Post), [])

    def test_column_is_unqualified_without_joins(self):
        query = Post.objects.with_any_status().filter(topic='x').query
        self.assertFalse(has_joins(query))
        self.assertEqual(get_moderation_column(query, Post), 'status')

    def test_column_is_qualified_with_joins(self):
        query = Post.objects.filter(category__name='News').query
        self.assertTrue(has_joins(query))
        self.assertEqual(get_moderation_column(query, Post), 'posts_post.status')


class ConstraintRemovalTest(TestCase):
    """Test removal of moderation constraints and their bindings."""

    def setUp(self):
        """Set up posts that differ in topic, status and views."""
        create_post('x-approved-busy', status='approved', topic='x', views=50)
        create_post('x-rejected-busy', status='rejected', topic='x', views=50)
        create_post('x-approved-quiet', status='approved', topic='x', views=5)
        create_post('y-approved-busy', status='approved', topic='y', views=50)

    def test_bindings_stay_aligned(self):
        """Test topic = 'x' AND status = 'approved' AND views > 10 loses only the middle."""
        queryset = (
            Post.objects.with_any_status()
            .filter(topic='x')
            .filter(status='approved')
            .filter(views__gt=10)
        )
        query = queryset.query
        self.assertEqual(where_params(query), ['x', 'approved', 10])

        removed = remove_moderation_constraints(query, Post)

        self.assertEqual(removed, 1)
        self.assertEqual(len(query.where.children), 2)
        self.assertEqual(
            [child.lhs.target.name for child in query.where.children],
            ['topic', 'views']
        )
        self.assertEqual(where_params(query), ['x', 10])
        self.assertEqual(titles(queryset), ['x-approved-busy', 'x-rejected-busy'])

    def test_membership_bindings_removed(self):
        """Test that every value of an IN constraint leaves the binding list."""
        queryset = (
            Post.objects.with_any_status()
            .filter(topic='x')
            .filter(status__in=['approved', 'pending', 'postponed'])
            .filter(views__gt=10)
        )
        query = queryset.query

        remove_moderation_constraints(query, Post)

        self.assertEqual(where_params(query), ['x', 10])

    def test_membership_before_status(self):
        """Test that a multi-value constraint ahead of status shifts the index correctly."""
        queryset = (
            Post.objects.with_any_status()
            .filter(views__in=[5, 50])
            .filter(status='rejected')
            .filter(topic='x')
        )
        query = queryset.query

        remove_moderation_constraints(query, Post)

        self.assertEqual(where_params(query), [5, 50, 'x'])
        self.assertEqual(len(titles(queryset)), 3)

    def test_null_check_binds_nothing(self):
        """Test that isnull constraints do not advance the binding index."""
        queryset = (
            Post.objects.with_any_status()
            .filter(moderated_at__isnull=True)
            .filter(status='approved')
            .filter(topic='x')
        )
        query = queryset.query

        remove_moderation_constraints(query, Post)

        self.assertEqual(len(query.where.children), 2)
        self.assertEqual(where_params(query), ['x'])

    def test_removal_is_idempotent(self):
        """Test that a second removal is a no-op."""
        query = Post.objects.filter(topic='x').query

        self.assertEqual(remove_moderation_constraints(query, Post), 1)
        children = list(query.where.children)
        params = where_params(query)

        self.assertEqual(remove_moderation_constraints(query, Post), 0)
        self.assertEqual(query.where.children, children)
        self.assertEqual(where_params(query), params)

    def test_removal_on_empty_where(self):
        """Test that removal on an unfiltered query does nothing."""
        query = Post.objects.with_any_status().query
        self.assertEqual(remove_moderation_constraints(query, Post), 0)

    def test_duplicate_status_constraints_all_removed(self):
        """Test that every status constraint goes, not just the first."""
        query = (
            Post.objects.with_any_status()
            .filter(status='approved')
            .filter(topic='x')
            .filter(status__in=['approved', 'rejected'])
            .query
        )

        self.assertEqual(remove_moderation_constraints(query, Post), 2)
        self.assertEqual(where_params(query), ['x'])

    def test_join_keeps_related_status(self):
        """Test that a joined table's status column survives removal."""
        create_category('News', status='active')
        query = Post.objects.filter(category__status='active').query

        self.assertEqual(remove_moderation_constraints(query, Post), 1)
        self.assertEqual(where_params(query), ['active'])

    def test_binding_mismatch_raises(self):
        """Test that diverging constraint/binding counts are reported."""
        query = Post.objects.filter(topic='x').query

        with patch('moderation.constraints.binding_width', return_value=0):
            with self.assertRaises(InconsistentBindingError):
                remove_moderation_constraints(query, Post)


class CombinedConstraintTest(TestCase):
    """Test detection and removal on OR-combined queries."""

    def setUp(self):
        create_post('a-approved', status='approved', topic='a')
        create_post('b-rejected', status='rejected', topic='b')

    def test_scope_found_inside_each_side(self):
        query = (Post.objects.filter(topic='a') | Post.objects.filter(topic='b')).query

        constraints = find_moderation_constraints(query, Post)

        self.assertEqual(len(constraints), 2)
        self.assertEqual({c.lookup_name for c in constraints}, {'in'})

    def test_removal_drops_scope_bindings_from_both_sides(self):
        queryset = Post.objects.filter(topic='a') | Post.objects.filter(topic='b')
        query = queryset.query
        self.assertEqual(
            where_params(query),
            ['approved', 'pending', 'a', 'approved', 'pending', 'b']
        )

        self.assertEqual(remove_moderation_constraints(query, Post), 2)
        self.assertEqual(where_params(query), ['a', 'b'])
        self.assertEqual(titles(queryset), ['a-approved', 'b-rejected'])

    def test_caller_status_filter_in_combined_side_kept(self):
        """Test that a status filter the caller wrote on one side survives."""
        queryset = (
            Post.objects.with_any_status().filter(status='rejected')
            | Post.objects.filter(topic='a')
        )
        query = queryset.query

        self.assertEqual(remove_moderation_constraints(query, Post), 1)
        self.assertEqual(where_params(query), ['rejected', 'a'])
        self.assertEqual(titles(queryset), ['a-approved', 'b-rejected'])
