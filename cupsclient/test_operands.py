#!/usr/bin/python3
"""Test suite for cupsclient.operands"""


import unittest

from cupsclient import catalog
from cupsclient import operands


def make_catalog(printers=(), classes=()):
    entries = {}
    for name in printers:
        entries[name] = catalog.PRINTER
    for name in classes:
        entries[name] = catalog.CLASS
    return catalog.Catalog(entries=entries)


class TestSplitJobSpec(unittest.TestCase):
    def test_forms(self):
        """Test splitting job specifications"""
        self.assertEqual(operands.split_job_spec('Office-12'), ('Office', 12))
        self.assertEqual(operands.split_job_spec('44'), ('', 44))
        self.assertEqual(operands.split_job_spec('Office'), ('', 0))
        self.assertEqual(operands.split_job_spec('Office-0'), ('', 0))
        self.assertEqual(operands.split_job_spec('-12'), ('', 0))
        self.assertEqual(operands.split_job_spec('a-b-7'), ('a-b', 7))


class TestSplitOperandWithoutCatalog(unittest.TestCase):
    def test_dest_id(self):
        """Test that dest-N is a job on no particular destination"""
        self.assertEqual(operands.split_operand('Office-321', None),
                         ('', 321))

    def test_keep_prefix(self):
        """Test that keep_prefix retains the destination"""
        self.assertEqual(operands.split_operand('Office-321', None,
                                                keep_prefix=True),
                         ('Office', 321))

    def test_number(self):
        """Test a bare job number"""
        self.assertEqual(operands.split_operand(' 44 ', None), ('', 44))

    def test_zero(self):
        """Test that job zero is rejected"""
        self.assertRaises(operands.UnknownDestination,
                          operands.split_operand, '0', None)

    def test_name(self):
        """Test that any other token is taken as a destination"""
        self.assertEqual(operands.split_operand('Office', None),
                         ('Office', 0))

    def test_sentinel_and_empty(self):
        """Test the "-" sentinel and an empty token"""
        self.assertEqual(operands.split_operand('-', None), ('-', 0))
        self.assertEqual(operands.split_operand('  ', None), None)


class TestSplitOperandWithCatalog(unittest.TestCase):
    def setUp(self):
        super().setUp()
        self.catalog = make_catalog(printers=['Office', 'Office-123'],
                                    classes=['Color'])

    def test_literal_name_wins(self):
        """Test that a destination named like a job spec stays a name"""
        self.assertEqual(operands.split_operand('Office-123', self.catalog),
                         ('Office-123', 0))

    def test_canonical_spelling(self):
        """Test that names come back as the server spells them"""
        self.assertEqual(operands.split_operand('color', self.catalog),
                         ('Color', 0))

    def test_job_on_known_destination(self):
        """Test a dest-N token whose name is not a destination"""
        self.assertEqual(operands.split_operand('Office-7', self.catalog,
                                                keep_prefix=True),
                         ('Office', 7))

    def test_unknown(self):
        """Test that an unmatched token is an unknown destination"""
        with self.assertRaises(operands.UnknownDestination) as cm:
            operands.split_operand('Basement', self.catalog)
        self.assertEqual(cm.exception.token, 'Basement')
        self.assertEqual(str(cm.exception), 'unknown destination "Basement"')

    def test_is_known_destination(self):
        """Test destination checks with and without a catalog"""
        self.assertTrue(operands.is_known_destination('office', self.catalog))
        self.assertFalse(operands.is_known_destination('Basement',
                                                       self.catalog))
        self.assertTrue(operands.is_known_destination('Basement', None))
        self.assertFalse(operands.is_known_destination('Basement-4', None))


class TestMoveSource(unittest.TestCase):
    def test_parse(self):
        """Test reading the first lpmove operand"""
        self.assertEqual(operands.parse_move_source('Office-123'),
                         (123, ''))
        self.assertEqual(operands.parse_move_source('Office'), (0, 'Office'))
        self.assertEqual(operands.parse_move_source(''), (0, ''))

    def test_normalize(self):
        """Test that a destination literally named like a job wins"""
        cat = make_catalog(printers=['Office-123'])
        self.assertEqual(
            operands.normalize_move_source('Office-123', 123, '', cat),
            (0, 'Office-123'))
        self.assertEqual(
            operands.normalize_move_source('Lab-4', 4, '', cat), (4, ''))
        self.assertEqual(
            operands.normalize_move_source('Office-123', 123, '', None),
            (123, ''))


if __name__ == '__main__':
    unittest.main()
