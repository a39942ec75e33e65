#!/usr/bin/python3
"""Test suite for cupsclient.lpr"""


import os
import unittest

from cupsclient import common
from cupsclient import ipp
from cupsclient import lpr
from cupsclient import test_stubserver as stubserver


def created_job(job_id):
    def reply(request):
        msg = stubserver.response(request)
        msg.job.add('job-id', ipp.TAG_INTEGER, job_id)
        return msg
    return reply


class TestLpr(stubserver.StubServerTestCase):
    def setUp(self):
        super().setUp()
        self.server.with_catalog(printers=['Lab', 'Office'])
        self.server.on(ipp.OP_PRINT_JOB, created_job(7))
        self.server.on(ipp.OP_CREATE_JOB, created_job(8))


class TestLprSubmission(TestLpr):
    def test_print_job(self):
        """Test printing a single file"""
        report = self.write_file('report.pdf')
        code, out, err = self.run_tool(lpr, '-PLab', report)
        self.assertEqual((code, out, err), (0, '', ''))
        request = self.server.last(ipp.OP_PRINT_JOB)
        self.assertEqual(request.path, '/printers/Lab')
        self.assertEqual(request.value('printer-uri'),
                         'ipp://localhost/printers/Lab')
        self.assertEqual(request.value('document-format'), 'application/pdf')
        self.assertEqual(request.value('job-name'), 'report.pdf')
        self.assertEqual(request.value('requesting-user-name'), 'alice')
        self.assertEqual(request.document, b'%PDF-1.4\n')

    def test_multiple_files(self):
        """Test that several files become Create-Job and Send-Document"""
        first = self.write_file('a.txt', b'first\n')
        second = self.write_file('b.txt', b'second\n')
        code, out, err = self.run_tool(lpr, '-P', 'Office', '-T', 'pair',
                                       first, second)
        self.assertEqual(code, 0)
        self.assertEqual(self.server.find(ipp.OP_PRINT_JOB), [])
        create = self.server.last(ipp.OP_CREATE_JOB)
        self.assertEqual(create.value('job-name'), 'pair')
        sends = self.server.find(ipp.OP_SEND_DOCUMENT)
        self.assertEqual([s.value('job-id') for s in sends], [8, 8])
        self.assertEqual([s.value('last-document') for s in sends],
                         [False, True])
        self.assertEqual([s.document for s in sends],
                         [b'first\n', b'second\n'])

    def test_options(self):
        """Test copies, holds and -o options"""
        report = self.write_file('report.pdf')
        self.run_tool(lpr, '-PLab', '-#2', '-q', '-o', 'media=A4 sides',
                      report)
        request = self.server.last(ipp.OP_PRINT_JOB)
        self.assertEqual(request.value('copies'), 2)
        self.assertEqual(request.value('job-hold-until'), 'indefinite')
        self.assertEqual(request.value('media'), 'A4')
        self.assertEqual(request.value('sides'), 'true')

    def test_raw(self):
        """Test that -l sends the raw format"""
        report = self.write_file('report.pdf')
        self.run_tool(lpr, '-PLab', '-l', report)
        request = self.server.last(ipp.OP_PRINT_JOB)
        self.assertEqual(request.value('document-format'),
                         'application/vnd.cups-raw')

    def test_stdin(self):
        """Test printing standard input"""
        code, out, err = self.run_tool(lpr, '-PLab', stdin=b'hello\n')
        self.assertEqual(code, 0)
        request = self.server.last(ipp.OP_PRINT_JOB)
        self.assertEqual(request.value('job-name'), '(stdin)')
        self.assertEqual(request.value('document-format'),
                         'application/octet-stream')
        self.assertEqual(request.document, b'hello\n')

    def test_remove_after(self):
        """Test that -r deletes the file once it is submitted"""
        report = self.write_file('report.pdf')
        self.run_tool(lpr, '-PLab', '-r', report)
        self.assertFalse(os.path.exists(report))

    def test_format_modifier(self):
        """Test that BSD format modifiers are warned about"""
        report = self.write_file('report.pdf')
        code, out, err = self.run_tool(lpr, '-PLab', '-c', report)
        self.assertEqual(code, 0)
        self.assertEqual(err, 'lpr: Warning - "c" format modifier not '
                         'supported - output may not be correct.\n')


class TestLprDestination(TestLpr):
    environ = {'PRINTER': 'Office'}

    def test_environment(self):
        """Test that PRINTER names the destination"""
        report = self.write_file('report.pdf')
        self.run_tool(lpr, report)
        self.assertEqual(self.server.last(ipp.OP_PRINT_JOB).path,
                         '/printers/Office')

    def test_lpoptions_default(self):
        """Test that the lpoptions default beats the environment"""
        os.makedirs(self.path('.cups'))
        with open(self.path('.cups', 'lpoptions'), 'w') as f:
            f.write('Default Lab sides=two-sided-long-edge\n')
        report = self.write_file('report.pdf')
        self.run_tool(lpr, report)
        request = self.server.last(ipp.OP_PRINT_JOB)
        self.assertEqual(request.path, '/printers/Lab')
        self.assertEqual(request.value('sides'), 'two-sided-long-edge')

    def test_unknown_destination(self):
        """Test that a destination the server lacks is an error"""
        report = self.write_file('report.pdf')
        code, out, err = self.run_tool(lpr, '-PBasement', report)
        self.assertEqual(code, 1)
        self.assertEqual(err,
                         'lpr: The printer or class does not exist\n')
        self.assertEqual(self.server.find(ipp.OP_PRINT_JOB), [])


class TestLprErrors(unittest.TestCase):
    def test_missing_file(self):
        """Test that a missing file is a usage error"""
        with self.assertRaises(common.UsageError) as cm:
            lpr.parse_args(['/nonexistent/file.pdf'])
        self.assertIn('unable to access "/nonexistent/file.pdf"',
                      str(cm.exception))

    def test_bad_copies(self):
        """Test that copies must be positive"""
        self.assertRaises(common.UsageError, lpr.parse_args, ['-#0'])

    def test_default_title(self):
        """Test the title used for standard input"""
        self.assertEqual(lpr.parse_args([]).title, '(stdin)')


if __name__ == '__main__':
    unittest.main()
