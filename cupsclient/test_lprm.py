#!/usr/bin/python3
"""Test suite for cupsclient.lprm"""


import unittest

from cupsclient import ipp
from cupsclient import lprm
from cupsclient import test_stubserver as stubserver


class TestLprm(stubserver.StubServerTestCase):
    def setUp(self):
        super().setUp()
        self.server.with_catalog(printers=['Office', 'Lab'])


class TestLprmDestination(TestLprm):
    def test_job_on_destination(self):
        """Test that -P scopes a job id to that destination"""
        code, out, err = self.run_tool(lprm, '-P', 'office', '12')
        self.assertEqual((code, err), (0, ''))
        request = self.server.last(ipp.OP_CANCEL_JOB)
        self.assertEqual(request.value('printer-uri'),
                         'ipp://localhost/printers/Office')
        self.assertEqual(request.value('job-id'), 12)

    def test_dest_id(self):
        """Test that dest-N keeps its destination"""
        self.run_tool(lprm, 'Lab-7')
        request = self.server.last(ipp.OP_CANCEL_JOB)
        self.assertEqual(request.value('printer-uri'),
                         'ipp://localhost/printers/Lab')
        self.assertEqual(request.value('job-id'), 7)

    def test_all_jobs(self):
        """Test that "-" cancels every job on the destination"""
        code, out, err = self.run_tool(lprm, '-PLab', '-')
        self.assertEqual(code, 0)
        request = self.server.last(ipp.OP_CANCEL_JOBS)
        self.assertEqual(request.path, '/admin/')
        self.assertEqual(request.value('printer-uri'),
                         'ipp://localhost/printers/Lab')
        self.assertEqual(self.server.find(ipp.OP_CANCEL_JOB), [])

    def test_destination_operand(self):
        """Test that a destination operand cancels its current job"""
        self.run_tool(lprm, 'Lab')
        request = self.server.last(ipp.OP_CANCEL_JOB)
        self.assertEqual(request.value('printer-uri'),
                         'ipp://localhost/printers/Lab')
        self.assertEqual(request.value('job-id'), 0)

    def test_unknown_destination(self):
        """Test that -P must name a known destination"""
        code, out, err = self.run_tool(lprm, '-P', 'Basement', '12')
        self.assertEqual(code, 1)
        self.assertEqual(err, 'lprm: unknown destination "Basement"\n')
        self.assertEqual(self.server.find(ipp.OP_CANCEL_JOB), [])


class TestLprmDefault(TestLprm):
    environ = {'PRINTER': 'Office'}

    def test_current_job(self):
        """Test that no operands cancels the default's current job"""
        code, out, err = self.run_tool(lprm)
        self.assertEqual(code, 0)
        request = self.server.last(ipp.OP_CANCEL_JOB)
        self.assertEqual(request.value('printer-uri'),
                         'ipp://localhost/printers/Office')
        self.assertEqual(request.value('job-id'), 0)


class TestLprmNoDefault(TestLprm):
    def test_no_default(self):
        """Test that a missing default destination is an error"""
        self.server.on(ipp.OP_CUPS_GET_DEFAULT,
                       stubserver.status(ipp.STATUS_NOT_FOUND))
        code, out, err = self.run_tool(lprm)
        self.assertEqual(code, 1)
        self.assertEqual(err, 'lprm: no default destination available\n')


if __name__ == '__main__':
    unittest.main()
