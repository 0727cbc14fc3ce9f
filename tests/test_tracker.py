"""Tests for the resource tracker."""
import contextlib
import pytest
from closeables import ResourceTracker, AggregateReleaseError, CallbackResource
from config import get_config_manager
from infrastructure import ReleaseMetrics


class Catastrophe(BaseException):
    """Failure outside the Exception hierarchy."""


class TestReleaseOrder:
    """Tests for LIFO release."""

    def test_releases_in_reverse_acquisition_order(self, make_resource, release_log):
        """Test that the last added resource is closed first."""
        tracker = ResourceTracker()
        for name in ['r1', 'r2', 'r3', 'r4']:
            tracker.add(make_resource(name))

        tracker.close()

        assert release_log == ['r4', 'r3', 'r2', 'r1']
        assert len(tracker) == 0

    def test_add_returns_resource(self, make_resource):
        """Test that add hands back what it was given."""
        tracker = ResourceTracker()
        resource = make_resource('a')

        assert tracker.add(resource) is resource
        assert tracker.resources == (resource,)

    def test_resources_snapshot_in_release_order(self, make_resource):
        """Test the pending resources view."""
        tracker = ResourceTracker()
        a, b = make_resource('a'), make_resource('b')
        tracker.add(a)
        tracker.add(b)

        assert tracker.resources == (b, a)

    def test_single_resource_constructor(self, make_resource, release_log):
        """Test ResourceTracker.of."""
        tracker = ResourceTracker.of(make_resource('only'))
        assert len(tracker) == 1

        tracker.close()

        assert release_log == ['only']

    def test_duplicate_add_released_per_entry(self, make_resource, release_log):
        """Test that an object added twice is closed once for each entry."""
        tracker = ResourceTracker()
        shared = make_resource('shared')
        tracker.add(shared)
        tracker.add(make_resource('other'))
        tracker.add(shared)

        tracker.close()

        assert release_log == ['shared', 'other', 'shared']
        assert shared.close_count == 2
        assert len(tracker) == 0

    def test_empty_close(self):
        """Test closing a tracker with nothing in it."""
        tracker = ResourceTracker()
        tracker.close()
        assert len(tracker) == 0


class TestFailures:
    """Tests for failures while closing."""

    def test_example_middle_failure(self, make_resource, release_log):
        """Test A, B, C added with only B failing."""
        failure = IOError("disk gone")
        tracker = ResourceTracker()
        tracker.add(make_resource('A'))
        tracker.add(make_resource('B', failure))
        tracker.add(make_resource('C'))

        with pytest.raises(AggregateReleaseError) as exc_info:
            tracker.close()

        assert release_log == ['C', 'B', 'A']
        assert exc_info.value.errors == [failure]
        assert len(tracker) == 0

    def test_failures_collected_in_encounter_order(self, make_resource, release_log):
        """Test that every recoverable failure is kept, in order."""
        first = ValueError("first")
        second = RuntimeError("second")
        tracker = ResourceTracker()
        tracker.add(make_resource('a', second))
        tracker.add(make_resource('b'))
        tracker.add(make_resource('c', first))

        with pytest.raises(AggregateReleaseError) as exc_info:
            tracker.close()

        assert release_log == ['c', 'b', 'a']
        assert exc_info.value.errors == [first, second]

    def test_template_label(self, make_resource):
        """Test the aggregate message built from the template."""
        tracker = ResourceTracker("closing {} for job {}", "inputs", 42)
        tracker.add(make_resource('a', OSError("x")))

        with pytest.raises(AggregateReleaseError) as exc_info:
            tracker.close()

        assert exc_info.value.message == "closing inputs for job 42"

    def test_default_label(self, make_resource):
        """Test the aggregate message without a template."""
        tracker = ResourceTracker()
        tracker.add(make_resource('a', OSError("x")))

        with pytest.raises(AggregateReleaseError) as exc_info:
            tracker.close()

        assert exc_info.value.message == "Closing resources failed"

    def test_fatal_failure_stops_and_clears(self, make_resource, release_log):
        """Test that a fatal failure aborts the rest but still empties the tracker."""
        recoverable = OSError("soft")
        fatal = Catastrophe()
        tracker = ResourceTracker()
        tracker.add(make_resource('a'))
        tracker.add(make_resource('b', fatal))
        tracker.add(make_resource('c', recoverable))

        with pytest.raises(Catastrophe) as exc_info:
            tracker.close()

        assert release_log == ['c', 'b']
        assert isinstance(exc_info.value.__context__, AggregateReleaseError)
        assert exc_info.value.__context__.errors == [recoverable]
        assert len(tracker) == 0

    def test_failed_close_not_repeated(self, make_resource, release_log):
        """Test that a second close after a failed one releases nothing."""
        tracker = ResourceTracker()
        tracker.add(make_resource('a', OSError("x")))

        with pytest.raises(AggregateReleaseError):
            tracker.close()
        tracker.close()

        assert release_log == ['a']

    def test_broken_fatal_config_does_not_drop_resources(self, make_resource, release_log):
        """Test that a bad fatal type name still lets every resource close."""
        get_config_manager().get_config().set('release.fatal_exceptions', ['builtins.NoSuchError'])
        tracker = ResourceTracker()
        tracker.add(make_resource('a'))
        tracker.add(make_resource('b'))

        tracker.close()

        assert release_log == ['b', 'a']
        assert len(tracker) == 0


class TestProtection:
    """Tests for protect/expose."""

    def test_protect_skips_close(self, make_resource, release_log):
        """Test that protected resources stay open and tracked."""
        tracker = ResourceTracker()
        tracker.add(make_resource('a'))
        tracker.add(make_resource('b'))
        tracker.protect()

        tracker.close()

        assert release_log == []
        assert len(tracker) == 2
        assert tracker.is_protected

    def test_expose_reenables_close(self, make_resource, release_log):
        """Test that expose hands the resources back."""
        tracker = ResourceTracker()
        tracker.add(make_resource('a'))
        tracker.add(make_resource('b'))
        tracker.protect()
        tracker.close()

        tracker.expose()
        tracker.close()

        assert release_log == ['b', 'a']
        assert len(tracker) == 0
        assert not tracker.is_protected

    def test_protect_and_expose_idempotent(self, make_resource, release_log):
        """Test repeated toggling."""
        tracker = ResourceTracker()
        tracker.add(make_resource('a'))
        tracker.protect()
        tracker.protect()
        tracker.close()
        assert release_log == []

        tracker.expose()
        tracker.expose()
        tracker.close()
        assert release_log == ['a']

    def test_second_close_is_noop_regardless_of_protection(self, make_resource, release_log):
        """Test closing an already closed tracker."""
        tracker = ResourceTracker()
        tracker.add(make_resource('a'))
        tracker.close()

        tracker.protect()
        tracker.close()
        tracker.expose()
        tracker.close()

        assert release_log == ['a']


class TestScope:
    """Tests for context manager use."""

    def test_with_block_closes(self, make_resource, release_log):
        """Test that leaving the block closes everything."""
        with ResourceTracker() as tracker:
            tracker.add(make_resource('a'))
            tracker.add(make_resource('b'))

        assert release_log == ['b', 'a']

    def test_with_block_closes_on_error(self, make_resource, release_log):
        """Test cleanup when the body raises."""
        with pytest.raises(KeyError):
            with ResourceTracker() as tracker:
                tracker.add(make_resource('a'))
                raise KeyError("boom")

        assert release_log == ['a']

    def test_close_error_chains_body_error(self, make_resource):
        """Test that a close failure after a body failure keeps both."""
        body_error = KeyError("boom")

        with pytest.raises(AggregateReleaseError) as exc_info:
            with ResourceTracker() as tracker:
                tracker.add(make_resource('a', OSError("x")))
                raise body_error

        assert exc_info.value.__context__ is body_error

    def test_protected_resources_outlive_scope(self, make_resource, release_log):
        """Test handing resources out of the scope."""
        with ResourceTracker() as tracker:
            resource = tracker.add(make_resource('kept'))
            tracker.protect()

        assert release_log == []
        assert resource.close_count == 0

    def test_callback(self, release_log):
        """Test tracking plain callables."""
        with ResourceTracker() as tracker:
            registered = tracker.callback(release_log.append, 'first')
            tracker.callback(release_log.append, 'second')

        assert isinstance(registered, CallbackResource)
        assert release_log == ['second', 'first']

    def test_enter_context(self, release_log):
        """Test tracking context managers."""
        @contextlib.contextmanager
        def managed(name):
            release_log.append(f'enter {name}')
            yield name.upper()
            release_log.append(f'exit {name}')

        with ResourceTracker() as tracker:
            value = tracker.enter_context(managed('a'))
            tracker.enter_context(managed('b'))
            assert value == 'A'

        assert release_log == ['enter a', 'enter b', 'exit b', 'exit a']

    def test_metrics_passed_through(self, make_resource):
        """Test that the tracker reports to its metrics collector."""
        metrics = ReleaseMetrics()
        tracker = ResourceTracker(metrics=metrics)
        tracker.add(make_resource('a'))
        tracker.add(make_resource('b', OSError("x")))

        with pytest.raises(AggregateReleaseError):
            tracker.close()

        stats = metrics.get_stats()
        assert stats['releases'] == 2
        assert stats['failures_recoverable'] == 1
        assert stats['batches_aggregate'] == 1
