#!/usr/bin/env python

"""Inspect the header and trailer of a gzip file

Command-line Usage:

  gzipinspect.py archive.gz [archive2.gz ...] - Show header/trailer fields.

Options:

  --strict          - Treat a non-deflate compression method as an error.
  --name-max <N>    - Maximum length of the filename field (default 128).
  --comment-max <N> - Maximum length of the comment field (default 8192).
  --utc             - Show the modification time in UTC.
  -v                - Verbose (debug) logging.
"""

import collections
import struct
import logging
import time
import os
import sys

logger = logging.getLogger(__name__)

#--------------------
# gzip constants
#--------------------
GZIP_MAGIC = b'\x1f\x8b'
MAGIC_SIZE = 2

# The rest of the fixed header: CM, FLG, MTIME, XFL, OS
HEADER_FORMAT = '<BBIBB'
HEADER_SIZE = 10

XLEN_FORMAT = '<H'
CRC16_FORMAT = '<H'

CRC32_FORMAT = '<I'
ISIZE_FORMAT = '<I'
FOOTER_SIZE = 8

CM_DEFLATE = 8
OS_UNIX = 3

FTEXT = 1
FHCRC = 2
FEXTRA = 4
FNAME = 8
FCOMMENT = 16
FRESERVED = 224

FLAG_NAMES = (
    (FTEXT, 'FTEXT'),
    (FHCRC, 'FHCRC'),
    (FEXTRA, 'FEXTRA'),
    (FNAME, 'FNAME'),
    (FCOMMENT, 'FCOMMENT'),
)

# [RFC-1952] FNAME and FCOMMENT must consist of ISO-8859-1 chars.
FIELD_ENCODING = 'latin-1'

#--------------------
# gzipinspect constants
#--------------------
FNAME_MAX = 128     # Both caps count the terminating zero byte,
FCOMMENT_MAX = 8192 # so at most (cap - 1) chars are kept.

TIME_FORMAT = '%d.%m.%Y %H:%M:%S'

#--------------------
# Exceptions
#--------------------
class GzipError(Exception):
    """ Base Exception """

class InvalidMagic(GzipError):
    """ Exception for invalid header magic bytes """

    def __init__(self, magic):
        GzipError.__init__(self, 'invalid gzip file (magic bytes: {!r})'.format(magic))
        self.magic = magic

class UnsupportedMethod(GzipError):
    """ Exception for a compression method other than deflate """

    def __init__(self, method):
        GzipError.__init__(self, 'unknown compression method: 0x{:x}'.format(method))
        self.method = method

class TruncatedStream(GzipError):
    """ Exception for a field cut short by the end of the stream """

    def __init__(self, field, expected, received):
        GzipError.__init__(self, 'read too few bytes while reading {}! (expected {}, got {})'.format(
                               field, expected, received))
        self.field = field
        self.expected = expected
        self.received = received

class SeekError(GzipError):
    """ Exception for a failed seek to the trailer """

    def __init__(self, length=None, reason=None):
        msg = 'error positioning file offset at last {} bytes'.format(FOOTER_SIZE)
        if reason:
            msg += ': {}'.format(reason)
        elif length is not None:
            msg += ': stream is only {} bytes long'.format(length)
        GzipError.__init__(self, msg)
        self.length = length

#--------------------
# Result types
#--------------------
class GzipHeader(collections.namedtuple('GzipHeader', 'ID1 ID2 CM FLG MTIME XFL OS XLEN')):
    """The fixed part of a member header (plus XLEN if FEXTRA is set)"""
    __slots__ = ()

    @property
    def is_deflate(self):
        return self.CM == CM_DEFLATE

    @property
    def is_unix(self):
        return self.OS == OS_UNIX

    def has(self, flag):
        return bool(self.FLG & flag)

class OptionalFields(collections.namedtuple('OptionalFields', 'EXFIELD FNAME FCOMMENT CRC16')):
    """Optional header fields. Each one is None unless its flag is set."""
    __slots__ = ()

OptionalFields.__new__.__defaults__ = (None, None, None, None)

GzipTrailer = collections.namedtuple('GzipTrailer', 'CRC32 ISIZE')

GzipReport = collections.namedtuple('GzipReport', 'header fields trailer')

#--------------------
# Utility functions
#--------------------
def _read_exact(fp, size, field):
    """Read exactly <size> bytes or raise TruncatedStream"""
    buf = fp.read(size)
    if len(buf) < size:
        raise TruncatedStream(field, size, len(buf))
    return buf

def _read_to_zero(fp, limit, field):
    """Read a zero terminated byte sequence of at most <limit> bytes.

       Returns (bytes, truncated). The terminator is not part of the
       result. If no terminator shows up within <limit> bytes, reading
       stops there and the result is cut to (limit - 1) bytes.
    """
    res = b''

    while len(res) < limit:
        c = fp.read(1)
        if not c:
            # Reach EOF before end of string
            raise TruncatedStream(field, len(res) + 1, len(res))
        elif c == b'\x00':
            return res, False
        res += c

    return res[:limit - 1], True

#--------------------
# Decoders
#--------------------
def read_header(fp, strict=False):
    """Read the fixed header region. Return GzipHeader object.

       The file must be positioned at the start of the member. Consumes
       10 bytes, or 12 if FEXTRA is set.
    """
    magic = fp.read(MAGIC_SIZE)
    if len(magic) < MAGIC_SIZE:
        raise TruncatedStream('header', HEADER_SIZE, len(magic))

    if magic != GZIP_MAGIC:
        raise InvalidMagic(magic)

    buf = fp.read(HEADER_SIZE - MAGIC_SIZE)
    if len(buf) < HEADER_SIZE - MAGIC_SIZE:
        raise TruncatedStream('header', HEADER_SIZE, MAGIC_SIZE + len(buf))

    CM, FLG, MTIME, XFL, OS = struct.unpack(HEADER_FORMAT, buf)

    if CM != CM_DEFLATE:
        if strict:
            raise UnsupportedMethod(CM)
        logger.warning('unknown compression method: 0x%x', CM)

    if FLG & FRESERVED:
        logger.warning('reserved flag bits are set (ignored): 0x%x', FLG & FRESERVED)

    XLEN = None
    if FLG & FEXTRA:
        XLEN = struct.unpack(XLEN_FORMAT, _read_exact(fp, 2, 'extra field length'))[0]

    header = GzipHeader(magic[0], magic[1], CM, FLG, MTIME, XFL, OS, XLEN)
    logger.debug('header: %r', header)

    return header

def read_optional_fields(fp, header, name_max=FNAME_MAX, comment_max=FCOMMENT_MAX):
    """Read the optional fields selected by header.FLG. Return
       OptionalFields object.

       The file must be positioned right after the fixed header region
       (i.e. where read_header() left it). Fields are read in stream
       order: extra field, filename, comment, header checksum.
    """
    if name_max < 1 or comment_max < 1:
        raise ValueError('field length caps must be at least 1: name_max={}, comment_max={}'.format(
                             name_max, comment_max))

    exfield = fname = comment = crc16 = None

    if header.has(FEXTRA):
        exfield = _read_exact(fp, header.XLEN, 'extra header')

    if header.has(FNAME):
        bs, truncated = _read_to_zero(fp, name_max, 'filename')
        if truncated:
            logger.warning('filename longer than %d bytes, truncated', name_max - 1)
        fname = bs.decode(FIELD_ENCODING)

    if header.has(FCOMMENT):
        bs, truncated = _read_to_zero(fp, comment_max, 'comment')
        if truncated:
            logger.warning('comment longer than %d bytes, truncated', comment_max - 1)
        comment = bs.decode(FIELD_ENCODING)

    if header.has(FHCRC):
        # Reported as is. Verifying it is not supported.
        crc16 = struct.unpack(CRC16_FORMAT, _read_exact(fp, 2, 'header checksum'))[0]

    fields = OptionalFields(exfield, fname, comment, crc16)
    logger.debug('optional fields: %r', fields)

    return fields

def read_trailer(fp):
    """Read CRC32 and ISIZE from the last 8 bytes. Return GzipTrailer
       object.

       This does not depend on the header at all; it works on any
       seekable stream at least 8 bytes long.
    """
    try:
        length = fp.seek(0, os.SEEK_END)
        if length < FOOTER_SIZE:
            raise SeekError(length=length)
        fp.seek(length - FOOTER_SIZE, os.SEEK_SET)
    except (OSError, ValueError) as e:
        raise SeekError(reason=str(e))

    crc32 = struct.unpack(CRC32_FORMAT, _read_exact(fp, 4, 'data checksum'))[0]
    isize = struct.unpack(ISIZE_FORMAT, _read_exact(fp, 4, 'data size'))[0]

    trailer = GzipTrailer(crc32, isize)
    logger.debug('trailer: %r', trailer)

    return trailer

def inspect(fp, strict=False, name_max=FNAME_MAX, comment_max=FCOMMENT_MAX):
    """Read the header, optional fields and trailer of an open gzip
       file. Return GzipReport object.

       The caller owns <fp>; it is never closed here.
    """
    fp.seek(0)

    header = read_header(fp, strict=strict)
    fields = read_optional_fields(fp, header, name_max=name_max, comment_max=comment_max)
    trailer = read_trailer(fp)

    return GzipReport(header, fields, trailer)

def inspect_file(filepath, **kwargs):
    """Open <filepath> and inspect it. Return GzipReport object."""
    with open(filepath, 'rb') as fp:
        return inspect(fp, **kwargs)

#--------------------
# Formatting
#--------------------
def flag_names(flg):
    """Return the names of the flag bits set in <flg>"""
    return [name for bit, name in FLAG_NAMES if flg & bit]

def format_report(report, utc=False):
    """Render a GzipReport as human-readable lines"""
    header, fields, trailer = report
    lines = ['valid gzip file']

    if header.is_deflate:
        lines.append('standard gzip compression method "deflate"')
    else:
        lines.append('unknown compression method: 0x{:x}'.format(header.CM))

    names = flag_names(header.FLG)
    if names:
        lines.append('flags set: {}'.format(' | '.join(names)))

    if header.MTIME:
        tm = time.gmtime(header.MTIME) if utc else time.localtime(header.MTIME)
        lines.append('creation time: {}'.format(time.strftime(TIME_FORMAT, tm)))

    lines.append('XFL: 0x{:x}'.format(header.XFL))
    lines.append('OS: {}'.format('UNIX' if header.is_unix else 'non-UNIX'))

    if fields.EXFIELD is not None:
        lines.append('extra field: {}'.format(' '.join('0x{:x}'.format(b) for b in fields.EXFIELD)))

    if fields.FNAME is not None:
        lines.append('filename: {}'.format(fields.FNAME))

    if fields.FCOMMENT is not None:
        lines.append('comment: {}'.format(fields.FCOMMENT))

    if fields.CRC16 is not None:
        lines.append('header checksum: 0x{:x}'.format(fields.CRC16))

    lines.append('checksum: 0x{:x}'.format(trailer.CRC32))
    lines.append('isize: 0x{:x}'.format(trailer.ISIZE))

    return '\n'.join(lines)

#--------------------
# Entry Point
#--------------------
def _usage():
    print(__doc__, file=sys.stderr)

def main(argv=None):
    import getopt

    if argv is None:
        argv = sys.argv[1:]

    strict = False
    utc = False
    name_max = FNAME_MAX
    comment_max = FCOMMENT_MAX
    loglevel = logging.INFO

    # Parameter processing
    shortopts = 'v'
    longopts = ('strict', 'name-max=', 'comment-max=', 'utc', 'help')

    try:
        opts, args = getopt.getopt(argv, shortopts, longopts)
        for key, val in opts:
            if key == '--strict':
                strict = True
            elif key == '--name-max':
                name_max = int(val)
            elif key == '--comment-max':
                comment_max = int(val)
            elif key == '--utc':
                utc = True
            elif key == '-v':
                loglevel = logging.DEBUG
            elif key == '--help':
                _usage()
                return 0
    except (getopt.GetoptError, ValueError) as e:
        print('gzipinspect: {}'.format(e), file=sys.stderr)
        _usage()
        return 1

    if not args or name_max < 1 or comment_max < 1:
        _usage()
        return 1

    logging.basicConfig(format='gzipinspect: %(message)s', level=loglevel)

    multiple = len(args) > 1
    status = 0

    for filepath in args:
        if multiple:
            print('---')
            print('file: {}'.format(filepath))
        try:
            report = inspect_file(filepath, strict=strict,
                                  name_max=name_max, comment_max=comment_max)
        except (GzipError, IOError) as e:
            logging.error('{}: {}'.format(filepath, e))
            status = 1
            continue
        print(format_report(report, utc=utc))

    if multiple:
        print('---')

    return status

if __name__ == '__main__':
    sys.exit(main())
