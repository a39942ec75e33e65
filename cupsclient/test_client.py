#!/usr/bin/python3
"""Test suite for cupsclient.client"""


import os
import shutil
import socket
import tempfile
import threading
import unittest
from unittest import mock

from cupsclient import builders
from cupsclient import client as client_
from cupsclient import ipp
from cupsclient import test_stubserver as stubserver


def _request(op, printer_uri=None, job_uri=None):
    msg = builders.new_request(op)
    if printer_uri:
        msg.operation.add('printer-uri', ipp.TAG_URI, printer_uri)
    if job_uri:
        msg.operation.add('job-uri', ipp.TAG_URI, job_uri)
    return msg


class TestResourcePath(unittest.TestCase):
    def test_admin(self):
        """Test that administrative operations go to /admin/"""
        for op in (ipp.OP_CANCEL_JOBS, ipp.OP_PURGE_JOBS,
                   ipp.OP_CUPS_ADD_MODIFY_PRINTER, ipp.OP_CUPS_DELETE_PRINTER,
                   ipp.OP_CUPS_ADD_MODIFY_CLASS, ipp.OP_CUPS_DELETE_CLASS,
                   ipp.OP_CUPS_SET_DEFAULT, ipp.OP_CUPS_ACCEPT_JOBS,
                   ipp.OP_CUPS_REJECT_JOBS, ipp.OP_PAUSE_PRINTER,
                   ipp.OP_RESUME_PRINTER, ipp.OP_ENABLE_PRINTER,
                   ipp.OP_DISABLE_PRINTER, ipp.OP_HOLD_NEW_JOBS,
                   ipp.OP_RELEASE_HELD_NEW_JOBS, ipp.OP_RESTART_PRINTER,
                   ipp.OP_PAUSE_ALL_PRINTERS,
                   ipp.OP_PAUSE_ALL_PRINTERS_AFTER_CURRENT_JOB,
                   ipp.OP_RESUME_ALL_PRINTERS, ipp.OP_RESTART_SYSTEM):
            msg = _request(op, 'ipp://localhost/printers/Office')
            self.assertEqual(client_.resource_path(msg), '/admin/',
                             ipp.operation_name(op))

    def test_jobs(self):
        """Test that job operations go to /jobs/"""
        for op in (ipp.OP_CANCEL_JOB, ipp.OP_CANCEL_MY_JOBS, ipp.OP_GET_JOBS,
                   ipp.OP_GET_JOB_ATTRIBUTES, ipp.OP_SET_JOB_ATTRIBUTES,
                   ipp.OP_HOLD_JOB, ipp.OP_RELEASE_JOB, ipp.OP_RESTART_JOB,
                   ipp.OP_RESUME_JOB, ipp.OP_CLOSE_JOB,
                   ipp.OP_GET_NOTIFICATIONS, ipp.OP_GET_DOCUMENTS,
                   ipp.OP_CUPS_AUTHENTICATE_JOB, ipp.OP_CUPS_MOVE_JOB,
                   ipp.OP_CUPS_GET_DOCUMENT, ipp.OP_CREATE_JOB_SUBSCRIPTIONS):
            msg = _request(op, 'ipp://localhost/printers/Office')
            self.assertEqual(client_.resource_path(msg), '/jobs/',
                             ipp.operation_name(op))

    def test_root(self):
        """Test that discovery operations go to /"""
        for op in (ipp.OP_CUPS_GET_DEVICES, ipp.OP_CUPS_GET_PPD,
                   ipp.OP_CUPS_GET_PPDS, ipp.OP_CUPS_GET_PRINTERS,
                   ipp.OP_CUPS_GET_CLASSES, ipp.OP_CUPS_GET_DEFAULT):
            msg = _request(op, 'ipp://localhost/printers/Office')
            self.assertEqual(client_.resource_path(msg), '/',
                             ipp.operation_name(op))

    def test_document_operations(self):
        """Test that document operations use the target's path"""
        for op in (ipp.OP_PRINT_JOB, ipp.OP_CREATE_JOB, ipp.OP_SEND_DOCUMENT,
                   ipp.OP_VALIDATE_JOB, ipp.OP_VALIDATE_DOCUMENT):
            msg = _request(op, 'ipp://host/printers/Office')
            self.assertEqual(client_.resource_path(msg), '/printers/Office')
            msg = _request(op)
            self.assertEqual(client_.resource_path(msg), '/ipp/print')
            msg = _request(op, job_uri='ipp://localhost/jobs/5')
            self.assertEqual(client_.resource_path(msg), '/jobs/5')

    def test_fallback(self):
        """Test that anything else goes to /"""
        msg = _request(ipp.OP_GET_PRINTER_ATTRIBUTES)
        self.assertEqual(client_.resource_path(msg), '/')
        msg = _request(ipp.OP_GET_PRINTER_ATTRIBUTES,
                       'ipp://localhost/printers/Office')
        self.assertEqual(client_.resource_path(msg), '/')


class TestParseServer(unittest.TestCase):
    def test_forms(self):
        """Test the ServerName forms"""
        self.assertEqual(client_.parse_server('print.example.com'),
                         ('print.example.com', None, False))
        self.assertEqual(client_.parse_server('localhost:8631'),
                         ('localhost', 8631, False))
        self.assertEqual(client_.parse_server('[::1]:631'),
                         ('::1', 631, False))
        self.assertEqual(client_.parse_server('ipps://secure:443/'),
                         ('secure', 443, True))
        self.assertEqual(client_.parse_server(''), ('', None, False))


class TestFromConfig(unittest.TestCase):
    def setUp(self):
        super().setUp()
        self.tmpdir = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, self.tmpdir, True)
        patcher = mock.patch.dict(os.environ, {'HOME': self.tmpdir},
                                  clear=True)
        patcher.start()
        self.addCleanup(patcher.stop)

    def write_conf(self, directory, text):
        if not os.path.isdir(directory):
            os.makedirs(directory)
        with open(os.path.join(directory, 'client.conf'), 'w') as f:
            f.write(text)

    def test_defaults(self):
        """Test the handle with nothing configured"""
        os.environ['CUPS_CONF_DIR'] = os.path.join(self.tmpdir, 'none')
        c = client_.Client.from_config()
        self.assertEqual((c.host, c.port, c.use_tls, c.user),
                         ('localhost', 631, False, 'anonymous'))
        self.assertFalse(c.insecure)

    def test_user_fallback(self):
        """Test the USER and USERNAME fallbacks"""
        os.environ['CUPS_CONF_DIR'] = os.path.join(self.tmpdir, 'none')
        os.environ['USERNAME'] = 'carol'
        self.assertEqual(client_.Client.from_config().user, 'carol')
        os.environ['USER'] = 'bob'
        self.assertEqual(client_.Client.from_config().user, 'bob')
        os.environ['CUPS_USER'] = 'alice'
        self.assertEqual(client_.Client.from_config().user, 'alice')
        self.assertEqual(client_.Client.from_config(user='dave').user, 'dave')

    def test_environment(self):
        """Test CUPS_SERVER, IPP_PORT and CUPS_IPP_INSECURE"""
        os.environ['CUPS_CONF_DIR'] = os.path.join(self.tmpdir, 'none')
        os.environ['CUPS_SERVER'] = 'printhost'
        os.environ['IPP_PORT'] = '8631'
        os.environ['CUPS_IPP_INSECURE'] = '1'
        c = client_.Client.from_config()
        self.assertEqual((c.host, c.port), ('printhost', 8631))
        self.assertTrue(c.insecure)

    def test_client_conf_layers(self):
        """Test that the user client.conf overrides the system one"""
        system = os.path.join(self.tmpdir, 'etc')
        os.environ['CUPS_CONF_DIR'] = system
        self.write_conf(system, 'ServerName sys.example.com:700\n'
                        'User "system user" # comment\n')
        self.write_conf(os.path.join(self.tmpdir, '.cups'),
                        '# user settings\nServerName user.example.com\n'
                        'Encryption Required\n')
        c = client_.Client.from_config()
        self.assertEqual(c.host, 'user.example.com')
        self.assertEqual(c.port, 631)
        self.assertTrue(c.use_tls)
        self.assertEqual(c.user, 'system user')

    def test_command_line_wins(self):
        """Test that -h and -E override the configuration"""
        os.environ['CUPS_CONF_DIR'] = os.path.join(self.tmpdir, 'none')
        os.environ['CUPS_SERVER'] = 'printhost'
        c = client_.Client.from_config(server='localhost:8631', encrypt=True)
        self.assertEqual((c.host, c.port, c.use_tls),
                         ('localhost', 8631, True))
        self.assertEqual(c.url('/admin/'), 'https://localhost:8631/admin/')

    def test_immutable(self):
        """Test that a client cannot be changed after construction"""
        c = client_.Client()
        self.assertRaises(AttributeError, setattr, c, 'host', 'elsewhere')
        self.assertRaises(AttributeError, setattr, c, 'user', 'mallory')


class TestTransport(unittest.TestCase):
    def setUp(self):
        super().setUp()
        self.server = stubserver.StubServer().start()
        self.addCleanup(self.server.stop)
        self.client = self.server.client()
        self.addCleanup(self.client.close)

    def test_send(self):
        """Test one request and its decoded reply"""
        self.server.on(ipp.OP_GET_JOBS, lambda r: stubserver.job_groups(
            r, [{'job-id': 3}]))
        msg = builders.request(ipp.OP_GET_JOBS, self.client)
        reply = self.client.send(msg)
        self.assertEqual(reply.code, ipp.STATUS_OK)
        self.assertEqual(builders.job_id(reply), 3)

        request = self.server.requests[0]
        self.assertEqual(request.path, '/jobs/')
        self.assertEqual(request.headers['Content-Type'], 'application/ipp')
        self.assertEqual(request.headers['Accept'], 'application/ipp')
        self.assertIn('Authorization', request.headers)
        self.assertEqual(request.value('requesting-user-name'), 'alice')

    def test_document_follows_header(self):
        """Test that the document is sent right after the IPP header"""
        msg = builders.request(ipp.OP_PRINT_JOB, self.client,
                               printer='Office')
        self.client.send(msg, b'%PDF-1.4 data')
        request = self.server.requests[0]
        self.assertEqual(request.path, '/printers/Office')
        self.assertEqual(request.document, b'%PDF-1.4 data')

    def test_streamed_document(self):
        """Test a document given as an iterator of chunks"""
        msg = builders.request(ipp.OP_PRINT_JOB, self.client,
                               printer='Office')
        self.client.send(msg, iter([b'one ', b'two']))
        self.assertEqual(self.server.requests[0].document, b'one two')

    def test_payload(self):
        """Test that send_with_payload returns the trailing bytes"""
        ppd = b'*PPD-Adobe: "4.3"\n'
        self.server.on(ipp.OP_CUPS_GET_PPD,
                       lambda r: (stubserver.response(r), ppd))
        msg = builders.request(ipp.OP_CUPS_GET_PPD, self.client,
                               printer='Office')
        reply, payload = self.client.send_with_payload(msg)
        self.assertEqual(reply.code, ipp.STATUS_OK)
        self.assertEqual(payload, ppd)
        self.assertEqual(self.server.requests[0].path, '/')

    def test_status_error(self):
        """Test that call raises the IPP status name"""
        self.server.on(ipp.OP_CANCEL_JOB,
                       stubserver.status(ipp.STATUS_NOT_FOUND))
        msg = builders.request(ipp.OP_CANCEL_JOB, self.client, job_id=9)
        self.assertEqual(self.client.send(msg).code, ipp.STATUS_NOT_FOUND)
        with self.assertRaises(ipp.StatusError) as cm:
            self.client.call(msg)
        self.assertEqual(str(cm.exception), 'client-error-not-found')

    def test_http_error(self):
        """Test that a non-2xx HTTP status becomes HTTPStatusError"""
        self.server.on(ipp.OP_GET_JOBS, lambda r: 403)
        msg = builders.request(ipp.OP_GET_JOBS, self.client)
        with self.assertRaises(client_.HTTPStatusError) as cm:
            self.client.send(msg)
        self.assertTrue(str(cm.exception).startswith('403'))

    def test_decode_error(self):
        """Test that a reply that is not IPP becomes DecodeError"""
        self.server.on(ipp.OP_GET_JOBS, lambda r: b'<html>')
        msg = builders.request(ipp.OP_GET_JOBS, self.client)
        self.assertRaises(client_.DecodeError, self.client.send, msg)

    def test_connect_error(self):
        """Test that a refused connection becomes ConnectError"""
        sock = socket.socket()
        sock.bind(('127.0.0.1', 0))
        port = sock.getsockname()[1]
        sock.close()
        c = client_.Client('127.0.0.1', port)
        msg = builders.request(ipp.OP_GET_JOBS, c)
        self.assertRaises(client_.ConnectError, c.send, msg)

    def test_build_error(self):
        """Test that an unencodable request becomes BuildError"""
        msg = builders.new_request(ipp.OP_GET_JOBS)
        msg.operation.add('limit', ipp.TAG_INTEGER, 'many')
        self.assertRaises(client_.BuildError, self.client.send, msg)
        self.assertEqual(self.server.requests, [])

    def test_oversize_value(self):
        """Test that a value too long for IPP becomes BuildError"""
        msg = builders.new_request(ipp.OP_GET_JOBS)
        msg.operation.add('job-name', ipp.TAG_NAME, 'x' * 40000)
        self.assertRaises(client_.BuildError, self.client.send, msg)
        self.assertEqual(self.server.requests, [])

    def test_integer_overflow(self):
        """Test that an integer outside 32 bits becomes BuildError"""
        msg = builders.new_request(ipp.OP_GET_JOBS)
        msg.operation.add('limit', ipp.TAG_INTEGER, 2 ** 40)
        self.assertRaises(client_.BuildError, self.client.send, msg)
        self.assertEqual(self.server.requests, [])

    def test_cancel(self):
        """Test that setting the cancel event aborts a document upload"""
        cancel = threading.Event()
        cancel.set()

        def chunks():
            yield b'never sent'

        msg = builders.request(ipp.OP_PRINT_JOB, self.client,
                               printer='Office')
        self.assertRaises(client_.ConnectError, self.client.send, msg,
                          chunks(), cancel)


if __name__ == '__main__':
    unittest.main()
