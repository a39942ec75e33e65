#!/usr/bin/python3
"""Test suite for cupsclient.catalog"""


import unittest

from cupsclient import catalog
from cupsclient import ipp
from cupsclient import test_stubserver as stubserver


class TestCatalogEntries(unittest.TestCase):
    def test_class_wins(self):
        """Test that a class shadows a printer of the same name"""
        cat = catalog.Catalog(entries={'Team': catalog.PRINTER})
        cat._add('team', catalog.CLASS)
        cat._add('TEAM', catalog.PRINTER)
        self.assertEqual(cat.kind('Team'), catalog.CLASS)
        self.assertEqual(cat.canonical('TEAM'), 'team')

    def test_lookup(self):
        """Test case-insensitive membership and names"""
        cat = catalog.Catalog(entries={'Office': catalog.PRINTER,
                                       'Lab': catalog.PRINTER})
        self.assertIn('office', cat)
        self.assertNotIn('Basement', cat)
        self.assertEqual(cat.names(), ['Lab', 'Office'])
        self.assertEqual(len(cat), 2)
        self.assertEqual(cat.canonical('Basement'), 'Basement')


class TestCatalogLoad(unittest.TestCase):
    def setUp(self):
        super().setUp()
        self.server = stubserver.StubServer().start()
        self.addCleanup(self.server.stop)
        self.client = self.server.client()
        self.addCleanup(self.client.close)

    def test_load(self):
        """Test that printers and classes are both queried"""
        self.server.with_catalog(printers=['Office', 'Team'],
                                 classes=['Team'])
        cat = catalog.Catalog(self.client).load()
        self.assertEqual(self.server.ops(), [ipp.OP_CUPS_GET_PRINTERS,
                                             ipp.OP_CUPS_GET_CLASSES])
        self.assertEqual(cat.kind('Office'), catalog.PRINTER)
        self.assertEqual(cat.kind('Team'), catalog.CLASS)

    def test_loaded_once(self):
        """Test that the server is asked only once"""
        self.server.with_catalog(printers=['Office'])
        cat = catalog.Catalog(self.client)
        cat.load()
        cat.load()
        self.assertEqual(len(self.server.requests), 2)

    def test_partial_failure(self):
        """Test that one failed query keeps the other's names"""
        self.server.on(ipp.OP_CUPS_GET_PRINTERS,
                       stubserver.destinations(['Office']))
        self.server.on(ipp.OP_CUPS_GET_CLASSES,
                       stubserver.status(ipp.STATUS_FORBIDDEN))
        cat = catalog.Catalog(self.client).load()
        self.assertTrue(cat.available)
        self.assertEqual(cat.names(), ['Office'])

    def test_both_fail(self):
        """Test that the first error is raised when both queries fail"""
        self.server.on(ipp.OP_CUPS_GET_PRINTERS,
                       stubserver.status(ipp.STATUS_FORBIDDEN))
        self.server.on(ipp.OP_CUPS_GET_CLASSES,
                       stubserver.status(ipp.STATUS_SERVICE_UNAVAILABLE))
        cat = catalog.Catalog(self.client)
        with self.assertRaises(ipp.StatusError) as cm:
            cat.load()
        self.assertEqual(cm.exception.code, ipp.STATUS_FORBIDDEN)
        self.assertFalse(cat.available)
        self.assertFalse(cat.try_load())
        self.assertEqual(len(self.server.requests), 2)


class TestDefaultDestination(unittest.TestCase):
    def setUp(self):
        super().setUp()
        self.server = stubserver.StubServer().start()
        self.addCleanup(self.server.stop)
        self.client = self.server.client()
        self.addCleanup(self.client.close)

    def test_default(self):
        """Test reading the server default"""
        self.server.on(ipp.OP_CUPS_GET_DEFAULT,
                       stubserver.destinations(['Office']))
        self.assertEqual(catalog.default_destination(self.client), 'Office')

    def test_no_default(self):
        """Test that not-found means there is no default"""
        self.server.on(ipp.OP_CUPS_GET_DEFAULT,
                       stubserver.status(ipp.STATUS_NOT_FOUND))
        self.assertEqual(catalog.default_destination(self.client), '')

    def test_error(self):
        """Test that other errors are raised"""
        self.server.on(ipp.OP_CUPS_GET_DEFAULT,
                       stubserver.status(ipp.STATUS_FORBIDDEN))
        self.assertRaises(ipp.StatusError, catalog.default_destination,
                          self.client)


if __name__ == '__main__':
    unittest.main()
