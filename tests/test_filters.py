"""
Tests for Filter Infrastructure.

Tests the individual bookmark filters, their composition and the
privacy -> view -> search chain built for a view.
"""

from datetime import datetime, timedelta, timezone

import pytest

from bookmark_manager.core.active_filter import (
    AbandonedView,
    AllView,
    ArchivedView,
    CategoryView,
    FavoritesView,
    FolderView,
    LabelView,
    PinnedView,
    UnknownView,
)
from bookmark_manager.core.filters import (
    AbandonedFilter,
    ArchivedFilter,
    CategoryFilter,
    CompositeFilter,
    FavoriteFilter,
    FilterChain,
    FolderFilter,
    LabelFilter,
    NotFilter,
    PassFilter,
    PrivacyFilter,
    SearchFilter,
    view_filter_for,
)
from tests.fixtures.test_data import REFERENCE_NOW, ids_of, make_bookmark


class TestPrivacyFilter:
    """Tests for PrivacyFilter."""

    def test_partition(self, bookmarks):
        """Test private and non-private filters split the collection exactly."""
        private = PrivacyFilter(private=True).filter(bookmarks)
        public = PrivacyFilter(private=False).filter(bookmarks)

        assert ids_of(private) == ["b6"]
        assert len(private) + len(public) == len(bookmarks)
        assert not set(ids_of(private)) & set(ids_of(public))

    def test_for_view(self):
        """Test only views scoped to the private folder are private."""
        assert PrivacyFilter.for_view(FolderView("Private", folder_id="private")).private
        assert not PrivacyFilter.for_view(FolderView("Work", folder_id="f1")).private
        assert not PrivacyFilter.for_view(AllView()).private
        assert PrivacyFilter.for_view(
            FolderView("Vault", folder_id="vault"), private_folder_id="vault"
        ).private


class TestViewFilters:
    """Tests for the per-view predicates."""

    def test_favorite_filter(self, bookmarks):
        assert ids_of(FavoriteFilter().filter(bookmarks)) == ["b1", "b6"]

    def test_archived_filter(self, bookmarks):
        assert ids_of(ArchivedFilter().filter(bookmarks)) == ["b5"]

    def test_category_filter_includes_folders(self, bookmarks, folders):
        """Test a category matches direct bookmarks and its folders' bookmarks."""
        assert ids_of(CategoryFilter("c-work", folders).filter(bookmarks)) == ["b1", "b2", "b3"]
        assert ids_of(CategoryFilter("reading", folders).filter(bookmarks)) == ["b4", "b5"]
        assert CategoryFilter("c-empty", folders).filter(bookmarks) == []

    def test_folder_filter(self, bookmarks):
        assert ids_of(FolderFilter("f-python").filter(bookmarks)) == ["b1", "b2"]

    def test_label_filter_matches_any(self, bookmarks):
        """Test a bookmark matches when it carries any selected label."""
        assert ids_of(LabelFilter(["l-async"]).filter(bookmarks)) == ["b2"]
        assert ids_of(LabelFilter(["l-async", "l-read"]).filter(bookmarks)) == ["b2", "b4"]

    def test_label_filter_empty_matches_nothing(self, bookmarks):
        assert LabelFilter([]).filter(bookmarks) == []

    def test_pass_filter(self, bookmarks):
        assert PassFilter().filter(bookmarks) == bookmarks


class TestAbandonedFilter:
    """Tests for AbandonedFilter."""

    def test_sample_collection(self, bookmarks, now):
        """Test visited-long-ago and never-visited-old bookmarks are abandoned."""
        result = AbandonedFilter(now=now).filter(bookmarks)
        assert ids_of(result) == ["b2", "b3", "b4"]

    def test_boundary_is_strict(self, now):
        """Test a last visit exactly at the cutoff is not abandoned."""
        cutoff = now - timedelta(days=30)
        at_cutoff = make_bookmark("a", visit_count=1, last_visited_at=cutoff)
        just_before = make_bookmark("b", visit_count=1, last_visited_at=cutoff - timedelta(seconds=1))

        abandoned = AbandonedFilter(now=now)
        assert not abandoned.matches(at_cutoff)
        assert abandoned.matches(just_before)

    def test_never_visited_uses_creation_time(self, now):
        cutoff = now - timedelta(days=30)
        assert not AbandonedFilter(now=now).matches(make_bookmark("a", created_at=cutoff))
        assert AbandonedFilter(now=now).matches(
            make_bookmark("b", created_at=cutoff - timedelta(minutes=1))
        )

    def test_recent_visit_wins_over_old_creation(self, now):
        """Test the last visit, not the creation time, decides once visited."""
        bookmark = make_bookmark(
            "a",
            created_at=now - timedelta(days=400),
            visit_count=3,
            last_visited_at=now - timedelta(days=1),
        )
        assert not AbandonedFilter(now=now).matches(bookmark)

    def test_custom_threshold(self, now):
        bookmark = make_bookmark("a", created_at=now - timedelta(days=10))
        assert AbandonedFilter(now=now, days=7).matches(bookmark)
        assert not AbandonedFilter(now=now, days=14).matches(bookmark)

    def test_naive_now_is_utc(self):
        """Test a naive reference time is treated as UTC."""
        naive = datetime(2024, 6, 1, 12, 0)
        assert AbandonedFilter(now=naive).now == datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


class TestSearchFilter:
    """Tests for SearchFilter."""

    def test_case_insensitive_title(self, bookmarks):
        assert ids_of(SearchFilter("PYTHON").filter(bookmarks)) == ["b1"]

    def test_matches_description_and_url(self, bookmarks):
        """Test description and url are searched too."""
        assert ids_of(SearchFilter("event loops").filter(bookmarks)) == ["b2"]
        assert ids_of(SearchFilter("longform").filter(bookmarks)) == ["b4"]

    def test_empty_term_matches_all(self, bookmarks):
        assert SearchFilter("").filter(bookmarks) == bookmarks
        assert SearchFilter(None).filter(bookmarks) == bookmarks

    def test_no_match(self, bookmarks):
        assert SearchFilter("nothing-like-this").filter(bookmarks) == []


class TestFilterComposition:
    """Tests for combining filters with &, | and ~."""

    def test_and(self, bookmarks):
        combined = FavoriteFilter() & PrivacyFilter(private=False)
        assert isinstance(combined, CompositeFilter)
        assert ids_of(combined.filter(bookmarks)) == ["b1"]

    def test_or(self, bookmarks):
        combined = FavoriteFilter() | ArchivedFilter()
        assert ids_of(combined.filter(bookmarks)) == ["b1", "b5", "b6"]

    def test_not(self, bookmarks):
        negated = ~FavoriteFilter()
        assert isinstance(negated, NotFilter)
        assert "b1" not in ids_of(negated.filter(bookmarks))

    def test_flattening(self):
        """Test chained & keeps a single flat composite."""
        combined = FavoriteFilter() & (ArchivedFilter() & PassFilter())
        assert len(combined.filters) == 3

    def test_empty_composite_matches(self):
        assert CompositeFilter([]).matches(make_bookmark("a"))

    def test_invalid_operator(self):
        with pytest.raises(ValueError, match="Invalid operator"):
            CompositeFilter([], operator="xor")


class TestViewFilterFor:
    """Tests for view_filter_for."""

    @pytest.mark.parametrize(
        "view, expected_type",
        [
            (AllView(), PassFilter),
            (FavoritesView(), FavoriteFilter),
            (ArchivedView(), ArchivedFilter),
            (AbandonedView(), AbandonedFilter),
            (CategoryView("Work", category_id="c-work"), CategoryFilter),
            (FolderView("Python", folder_id="f-python"), FolderFilter),
            (PinnedView("News", folder_id="f-news"), FolderFilter),
            (LabelView.of(["l-py"]), LabelFilter),
            (UnknownView("Smart", kind="smart"), PassFilter),
        ],
    )
    def test_mapping(self, view, expected_type, folders):
        assert isinstance(view_filter_for(view, folders, now=REFERENCE_NOW), expected_type)


class TestFilterChain:
    """Tests for FilterChain."""

    def test_for_view_has_three_stages(self, folders):
        chain = FilterChain.for_view(AllView(), folders, search_term="x")
        assert len(chain) == 3
        assert isinstance(chain.filters[0], PrivacyFilter)
        assert isinstance(chain.filters[2], SearchFilter)

    def test_apply_keeps_order(self, bookmarks, folders):
        """Test the chain narrows without reordering."""
        chain = FilterChain.for_view(CategoryView("Work", category_id="c-work"), folders)
        assert ids_of(chain.apply(bookmarks)) == ["b1", "b2", "b3"]

    def test_private_view(self, bookmarks, folders):
        chain = FilterChain.for_view(FolderView("Private", folder_id="private"), folders)
        assert ids_of(chain.apply(bookmarks)) == ["b6"]

    def test_matches_agrees_with_apply(self, bookmarks, folders):
        chain = FilterChain.for_view(FavoritesView(), folders, search_term="docs")
        assert [b for b in bookmarks if chain.matches(b)] == chain.apply(bookmarks)

    def test_empty_chain(self, bookmarks):
        chain = FilterChain()
        assert not chain
        assert chain.apply(bookmarks) == bookmarks
