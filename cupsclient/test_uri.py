#!/usr/bin/python3
"""Test suite for cupsclient.uri"""


import unittest

from cupsclient import uri


class TestDestinationUri(unittest.TestCase):
    def test_escaping(self):
        """Test that spaces are percent-encoded in printer URIs"""
        value = uri.destination_uri('Office Team')
        self.assertTrue(value.startswith('ipp://localhost/'))
        self.assertIn('/printers/Office%20Team', value)

    def test_reserved_characters(self):
        """Test that reserved characters are escaped and case is kept"""
        self.assertEqual(uri.destination_uri('Lab#2?x'),
                         'ipp://localhost/printers/Lab%232%3Fx')
        self.assertEqual(uri.destination_uri('HP_LaserJet-4'),
                         'ipp://localhost/printers/HP_LaserJet-4')

    def test_full_uri_unchanged(self):
        """Test that a full URI is passed through"""
        self.assertEqual(uri.destination_uri(' ipp://h/printers/X '),
                         'ipp://h/printers/X')

    def test_empty(self):
        """Test that an empty name gives the all-printers scope"""
        self.assertEqual(uri.destination_uri(''),
                         'ipp://localhost/printers/')
        self.assertEqual(uri.destination_uri(None),
                         'ipp://localhost/printers/')

    def test_class_uri(self):
        """Test class URIs"""
        self.assertEqual(uri.class_uri('Team'),
                         'ipp://localhost/classes/Team')


class TestJobUri(unittest.TestCase):
    def test_job_uri(self):
        """Test building a job URI"""
        self.assertEqual(uri.job_uri(12), 'ipp://localhost/jobs/12')

    def test_bad_job_id(self):
        """Test that job ids must be positive"""
        self.assertRaises(ValueError, uri.job_uri, 0)

    def test_job_id_from_uri(self):
        """Test reading the job id back out of a URI"""
        self.assertEqual(uri.job_id_from_uri('ipp://localhost/jobs/12'), 12)
        self.assertEqual(uri.job_id_from_uri('ipp://localhost/jobs/'), 0)


class TestNameFromUri(unittest.TestCase):
    def test_printer(self):
        """Test extracting a destination name from a URI"""
        self.assertEqual(
            uri.name_from_uri('ipp://host:631/printers/Office%20Team'),
            'Office Team')

    def test_plain_name(self):
        """Test that plain names are returned as-is"""
        self.assertEqual(uri.name_from_uri('Lab'), 'Lab')

    def test_uri_path(self):
        """Test the path component helper"""
        self.assertEqual(uri.uri_path('ipp://h/printers/Office'),
                         '/printers/Office')
        self.assertEqual(uri.uri_path(''), '')


if __name__ == '__main__':
    unittest.main()
