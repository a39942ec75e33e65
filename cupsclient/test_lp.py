#!/usr/bin/python3
"""Test suite for cupsclient.lp"""


import unittest

from cupsclient import common
from cupsclient import ipp
from cupsclient import lp
from cupsclient import test_stubserver as stubserver


def created_job(job_id):
    def reply(request):
        msg = stubserver.response(request)
        msg.job.add('job-id', ipp.TAG_INTEGER, job_id)
        return msg
    return reply


class TestParseArgs(unittest.TestCase):
    def test_server_first(self):
        """Test that -h must come first"""
        with self.assertRaises(common.UsageError) as cm:
            lp.parse_args(['-d', 'Office', '-h', 'srv'])
        self.assertEqual(str(cm.exception),
                         '-h must appear before all other options')
        lp.parse_args(['-E', '-h', 'srv', '-d', 'Office'])

    def test_priority(self):
        """Test the priority range"""
        self.assertEqual(lp.parse_args(['-q', '100']).job_options,
                         {'job-priority': '100'})
        self.assertRaises(common.UsageError, lp.parse_args, ['-q', '101'])

    def test_single_stdin(self):
        """Test that "-" cannot be mixed with files"""
        self.assertRaises(common.UsageError, lp.parse_args, ['-', 'a.pdf'])
        self.assertEqual(lp.parse_args(['-']).files, [])

    def test_hold_options(self):
        """Test translating -H"""
        self.assertEqual(lp.hold_options('hold'),
                         {'job-hold-until': 'indefinite'})
        self.assertEqual(lp.hold_options('23:00'),
                         {'job-hold-until': '23:00'})
        self.assertEqual(lp.hold_options('immediate'),
                         {'job-hold-until': 'no-hold', 'job-priority': '100'})


class TestLpSubmit(stubserver.StubServerTestCase):
    def setUp(self):
        super().setUp()
        self.server.on(ipp.OP_PRINT_JOB, created_job(42))
        self.server.on(ipp.OP_CREATE_JOB, created_job(43))

    def test_request_id(self):
        """Test that the new job is announced"""
        report = self.write_file('report.pdf')
        code, out, err = self.run_tool(lp, '-d', 'Office', report)
        self.assertEqual((code, err), (0, ''))
        self.assertEqual(out, 'request id is Office-42 (1 file(s))\n')
        request = self.server.last(ipp.OP_PRINT_JOB)
        self.assertEqual(request.path, '/printers/Office')
        self.assertEqual(request.value('job-name'), 'report.pdf')

    def test_silent(self):
        """Test that -s suppresses the request id"""
        report = self.write_file('report.pdf')
        code, out, err = self.run_tool(lp, '-s', '-d', 'Office', report)
        self.assertEqual((code, out), (0, ''))

    def test_files_counted(self):
        """Test the file count for multi-document jobs"""
        first = self.write_file('a.pdf')
        second = self.write_file('b.pdf')
        code, out, err = self.run_tool(lp, '-d', 'Office', '-t', 'both',
                                       first, second)
        self.assertEqual(out, 'request id is Office-43 (2 file(s))\n')
        sends = self.server.find(ipp.OP_SEND_DOCUMENT)
        self.assertEqual(len(sends), 2)

    def test_job_attributes(self):
        """Test copies, pages, priority and -o options"""
        report = self.write_file('report.pdf')
        self.run_tool(lp, '-d', 'Office', '-n', '3', '-P', '1-4',
                      '-q', '80', '-o', 'sides=two-sided-long-edge', report)
        request = self.server.last(ipp.OP_PRINT_JOB)
        self.assertEqual(request.value('copies'), 3)
        self.assertEqual(request.value('job-priority'), 80)
        self.assertEqual(request.value('page-ranges'), ipp.Range(1, 4))
        self.assertEqual(request.value('sides'), 'two-sided-long-edge')

    def test_hold(self):
        """Test that -H hold submits a held job"""
        report = self.write_file('report.pdf')
        self.run_tool(lp, '-d', 'Office', '-H', 'hold', report)
        request = self.server.last(ipp.OP_PRINT_JOB)
        self.assertEqual(request.value('job-hold-until'), 'indefinite')

    def test_server_default(self):
        """Test falling back to the server's default destination"""
        self.server.on(ipp.OP_CUPS_GET_DEFAULT,
                       stubserver.destinations(['Lab']))
        code, out, err = self.run_tool(lp, stdin=b'text\n')
        self.assertEqual(out, 'request id is Lab-42 (1 file(s))\n')
        self.assertEqual(self.server.last(ipp.OP_PRINT_JOB).document,
                         b'text\n')

    def test_no_destination(self):
        """Test that having no destination at all is an error"""
        self.server.on(ipp.OP_CUPS_GET_DEFAULT,
                       stubserver.status(ipp.STATUS_NOT_FOUND))
        code, out, err = self.run_tool(lp, stdin=b'text\n')
        self.assertEqual(code, 1)
        self.assertEqual(err, 'lp: no default destination available\n')

    def test_oversize_option(self):
        """Test that an option value too long to encode fails cleanly"""
        report = self.write_file('report.pdf')
        code, out, err = self.run_tool(lp, '-d', 'Office', '-o',
                                       'foo=' + 'y' * 40000, report)
        self.assertEqual((code, out), (1, ''))
        self.assertTrue(err.startswith('lp: '))
        self.assertEqual(len(err.splitlines()), 1)
        self.assertEqual(self.server.find(ipp.OP_PRINT_JOB), [])


class TestLpDestinationEnvironment(stubserver.StubServerTestCase):
    environ = {'PRINTER': 'lp', 'CUPS_PRINTER': 'Color'}

    def test_lp_placeholder_skipped(self):
        """Test that PRINTER=lp is passed over"""
        code, out, err = self.run_tool(lp, stdin=b'text\n')
        self.assertEqual(code, 0)
        self.assertEqual(self.server.last(ipp.OP_PRINT_JOB).path,
                         '/printers/Color')


class TestLpModify(stubserver.StubServerTestCase):
    def test_hold(self):
        """Test that -i with -H hold sends Hold-Job"""
        code, out, err = self.run_tool(lp, '-i', '17', '-H', 'hold')
        self.assertEqual((code, err), (0, ''))
        request = self.server.last(ipp.OP_HOLD_JOB)
        self.assertEqual(request.path, '/jobs/')
        self.assertEqual(request.value('job-uri'), 'ipp://localhost/jobs/17')
        self.assertEqual(self.server.find(ipp.OP_SET_JOB_ATTRIBUTES), [])

    def test_resume(self):
        """Test that -H resume sends Release-Job"""
        self.run_tool(lp, '-i', 'Office-17', '-H', 'resume')
        self.assertEqual(self.server.ops(), [ipp.OP_RELEASE_JOB])

    def test_immediate(self):
        """Test that -H immediate releases and raises the priority"""
        self.run_tool(lp, '-i', '17', '-H', 'immediate')
        self.assertEqual(self.server.ops(), [ipp.OP_RELEASE_JOB,
                                             ipp.OP_SET_JOB_ATTRIBUTES])
        request = self.server.last(ipp.OP_SET_JOB_ATTRIBUTES)
        self.assertEqual(request.value('job-priority'), 100)
        self.assertEqual(request.value('job-hold-until'), 'no-hold')

    def test_set_attributes(self):
        """Test changing a job's title and copies"""
        self.run_tool(lp, '-i', '17', '-t', 'renamed', '-n', '2')
        request = self.server.last(ipp.OP_SET_JOB_ATTRIBUTES)
        self.assertEqual(request.value('job-name'), 'renamed')
        self.assertEqual(request.value('copies'), 2)

    def test_nothing_to_change(self):
        """Test that -i alone is an error"""
        code, out, err = self.run_tool(lp, '-i', '17')
        self.assertEqual(code, 1)
        self.assertEqual(err, 'lp: no changes requested for job 17\n')

    def test_bad_job(self):
        """Test that the job id must be valid"""
        code, out, err = self.run_tool(lp, '-i', 'Office', '-H', 'hold')
        self.assertEqual((code, err), (1, 'lp: invalid job id\n'))


if __name__ == '__main__':
    unittest.main()
