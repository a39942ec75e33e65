#!/usr/bin/python3
"""Test suite for cupsclient.ppd"""


import os
import shutil
import tempfile
import unittest

from cupsclient import ppd


SAMPLE = b"""\
*PPD-Adobe: "4.3"
*% Generated for the test suite
*OpenGroup: General/General
*OpenUI *PageSize/Media Size: PickOne
*DefaultPageSize: Letter
*PageSize Letter/US Letter: "<</PageSize[612 792]>>setpagedevice"
*PageSize A4/A4: "<</PageSize[595 842]>>setpagedevice"
*CloseUI: *PageSize
*OpenUI *PageRegion: PickOne
*DefaultPageRegion: Letter
*PageRegion Letter: ""
*CloseUI: *PageRegion
*CustomPageSize True: "pop pop pop"
*CloseGroup: General
*OpenGroup: Finishing
*OpenUI *Duplex/2-Sided Printing: PickOne
*DefaultDuplex: None
*Duplex None/Off: ""
*Duplex DuplexNoTumble/Long Edge: ""
*CloseUI: *Duplex
*OpenUI *Collate: Boolean
*DefaultCollate: True
*Collate True: ""
*Collate False: ""
*CloseUI: *Collate
*CloseGroup: Finishing
"""


class PPDTestCase(unittest.TestCase):
    def setUp(self):
        super().setUp()
        self.tmpdir = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, self.tmpdir, True)

    def write_ppd(self, data=SAMPLE, name='office.ppd'):
        path = os.path.join(self.tmpdir, name)
        with open(path, 'wb') as f:
            f.write(data)
        return path


class TestLoad(PPDTestCase):
    def test_options(self):
        """Test that options come back in file order across groups"""
        loaded = ppd.load(self.write_ppd())
        self.assertEqual([o.keyword for o in ppd.iter_options(loaded)],
                         ['PageSize', 'PageRegion', 'Duplex', 'Collate'])
        groups = ppd.iter_groups(loaded.optionGroups)
        self.assertEqual([g.name for g in groups], ['General', 'Finishing'])
        duplex = loaded.findOption('Duplex')
        self.assertEqual((duplex.text, duplex.defchoice),
                         ('2-Sided Printing', 'None'))

    def test_not_a_ppd(self):
        """Test that unreadable files become ValueError"""
        self.assertRaises(ValueError, ppd.load,
                          self.write_ppd(b'hello\n', 'notes.txt'))
        self.assertRaises(ValueError, ppd.load,
                          os.path.join(self.tmpdir, 'missing.ppd'))


class TestListOptions(PPDTestCase):
    def setUp(self):
        super().setUp()
        self.ppd = ppd.load(self.write_ppd())

    def test_defaults_marked(self):
        """Test that the PPD defaults are marked"""
        self.assertEqual(list(ppd.list_options(self.ppd)),
                         ['PageSize/Media Size: *Letter A4 '
                          'Custom.WIDTHxHEIGHT',
                          'Duplex/2-Sided Printing: *None DuplexNoTumble',
                          'Collate/Collate: *True False'])

    def test_saved_values(self):
        """Test that saved values override defaults and PageRegion is hidden"""
        lines = list(ppd.list_options(self.ppd, {'pagesize': 'A4',
                                                 'Collate': 'False',
                                                 'InputSlot': 'Tray2'}))
        self.assertEqual(lines,
                         ['PageSize/Media Size: Letter *A4 '
                          'Custom.WIDTHxHEIGHT',
                          'Duplex/2-Sided Printing: *None DuplexNoTumble',
                          'Collate/Collate: True *False'])

    def test_custom_page_size(self):
        """Test that a custom size marks the custom choice"""
        lines = list(ppd.list_options(self.ppd, {'PageSize': 'Custom.4x6in'}))
        self.assertEqual(lines[0], 'PageSize/Media Size: Letter A4 '
                                   '*Custom.WIDTHxHEIGHT')


if __name__ == '__main__':
    unittest.main()
