from mockito import mock, verify, unstub
from unittest import TestCase

from cachedapi.cache import MemoryCache
from cachedapi.model import CacheEntry


class TestMemoryCache(TestCase):
    def setUp(self):
        self.__sut = MemoryCache()
        self.__listener = mock()

    def tearDown(self):
        unstub()

    def test_read_missing_entry(self):
        self.assertIsNone(self.__sut.read('fingerprint'))

    def test_write_then_read(self):
        value = {'a': 1}
        entry = self.__sut.write('fingerprint', value)

        self.assertEqual(CacheEntry('fingerprint', value), entry)
        self.assertIs(value, self.__sut.read('fingerprint').value)

    def test_none_is_a_cached_value(self):
        self.__sut.write('fingerprint', None)

        entry = self.__sut.read('fingerprint')
        self.assertIsNotNone(entry)
        self.assertIsNone(entry.value)

    def test_write_replaces_entry(self):
        self.__sut.write('fingerprint', {'a': 1})
        self.__sut.write('fingerprint', {'b': 2})
        self.assertEqual({'b': 2}, self.__sut.read('fingerprint').value)

    def test_subscribers_are_notified_of_writes(self):
        self.__sut.subscribe('fingerprint', self.__listener.on_update)

        self.__sut.write('fingerprint', {'a': 1})

        verify(self.__listener, times=1).on_update({'a': 1})

    def test_subscribers_are_notified_of_equal_writes(self):
        self.__sut.subscribe('fingerprint', self.__listener.on_update)

        self.__sut.write('fingerprint', {'a': 1})
        self.__sut.write('fingerprint', {'a': 1})

        verify(self.__listener, times=2).on_update({'a': 1})

    def test_subscribers_are_only_notified_for_their_fingerprint(self):
        self.__sut.subscribe('fingerprint', self.__listener.on_update)

        self.__sut.write('other', {'a': 1})

        verify(self.__listener, times=0).on_update({'a': 1})

    def test_subscribers_are_notified_in_order(self):
        calls = []
        self.__sut.subscribe('fingerprint', lambda value: calls.append(('first', value)))
        self.__sut.subscribe('fingerprint', lambda value: calls.append(('second', value)))

        self.__sut.write('fingerprint', 1)

        self.assertEqual([('first', 1), ('second', 1)], calls)

    def test_unsubscribe(self):
        unsubscribe = self.__sut.subscribe('fingerprint', self.__listener.on_update)
        self.__sut.write('fingerprint', {'a': 1})

        unsubscribe()
        # Unsubscribing twice is harmless.
        unsubscribe()
        self.__sut.write('fingerprint', {'b': 2})

        verify(self.__listener, times=1).on_update({'a': 1})
        verify(self.__listener, times=0).on_update({'b': 2})

    def test_unsubscribe_only_removes_its_own_registration(self):
        calls = []
        unsubscribe = self.__sut.subscribe('fingerprint', calls.append)
        self.__sut.subscribe('fingerprint', calls.append)

        unsubscribe()
        self.__sut.write('fingerprint', 1)

        self.assertEqual([1], calls)

    def test_failing_subscriber_does_not_stop_others(self):
        def fail(value):
            raise RuntimeError('listener failed')
        self.__sut.subscribe('fingerprint', fail)
        self.__sut.subscribe('fingerprint', self.__listener.on_update)

        with self.assertLogs('cachedapi.events', level='ERROR'):
            self.__sut.write('fingerprint', 1)

        verify(self.__listener, times=1).on_update(1)
        self.assertEqual(1, self.__sut.read('fingerprint').value)

    def test_close_forgets_everything(self):
        self.__sut.subscribe('fingerprint', self.__listener.on_update)
        self.__sut.write('fingerprint', 1)

        self.__sut.close()
        self.assertIsNone(self.__sut.read('fingerprint'))
        self.__sut.write('fingerprint', 2)

        verify(self.__listener, times=0).on_update(2)
