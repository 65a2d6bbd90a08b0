import io, unittest
from pathlib import Path
from mime_reader import QuotedPrintableReader, decode_quoted_printable
from mime_reader.quoted_printable import decode_q_word, decode_qp_bytes

FIXTURES = Path(__file__).parent / "fixtures"


def read_in_steps(reader, step):
    out = bytearray()
    while True:
        piece = reader.read(step)
        if not piece:
            return bytes(out)
        out += piece


class TestQuotedPrintable(unittest.TestCase):
    def test_fixture_matches_original(self):
        with open(FIXTURES / "quoted-printable.txt", "rb") as f:
            generated = decode_quoted_printable(f).read()
        self.assertEqual(generated, (FIXTURES / "original.txt").read_bytes())

    def test_chunked_reads_match_full_decode(self):
        encoded = (FIXTURES / "quoted-printable.txt").read_bytes()
        reference, _ = decode_qp_bytes(encoded)
        for chunk_size in (1, 2, 3, 5, 7, 64):
            for step in (1, 4, 1000):
                reader = QuotedPrintableReader(io.BytesIO(encoded), chunk_size=chunk_size)
                self.assertEqual(read_in_steps(reader, step), reference, (chunk_size, step))

    def test_soft_line_breaks(self):
        self.assertEqual(decode_quoted_printable(b"abc=\r\ndef=\nghi").read(), b"abcdefghi")

    def test_hex_escapes(self):
        self.assertEqual(decode_quoted_printable(b"J=F6rg =3D x").read(), b"J\xf6rg = x")

    def test_malformed_escapes_are_literal(self):
        self.assertEqual(decode_quoted_printable(b"a=ZZb").read(), b"a=ZZb")
        self.assertEqual(decode_quoted_printable(b"=4").read(), b"=4")
        self.assertEqual(decode_quoted_printable(b"x=\ry").read(), b"x=\ry")
        # only uppercase hex is an escape
        self.assertEqual(decode_quoted_printable(b"=3d").read(), b"=3d")

    def test_dangling_equals_at_end(self):
        self.assertEqual(decode_quoted_printable(b"end=").read(), b"end=")
        self.assertEqual(QuotedPrintableReader(b"end=", chunk_size=1).read(), b"end=")

    def test_escape_split_across_chunks(self):
        reader = QuotedPrintableReader(b"caf=C3=A9=\r\n!", chunk_size=1)
        self.assertEqual(read_in_steps(reader, 1), "café!".encode())

    def test_line_breaks_stripped_on_request(self):
        data = b"one\r\ntwo=\r\nthree\nfour=0D=0A"
        self.assertEqual(decode_quoted_printable(data, preserve_line_breaks=True).read(),
                         b"one\r\ntwothree\nfour\r\n")
        self.assertEqual(decode_quoted_printable(data, preserve_line_breaks=False).read(),
                         b"onetwothreefour\r\n")

    def test_soft_break_with_trailing_whitespace(self):
        data = b"ab= \r\ncd=\t \nef= x"
        self.assertEqual(decode_quoted_printable(data).read(), b"abcdef= x")
        self.assertEqual(QuotedPrintableReader(data, chunk_size=1).read(), b"abcdef= x")

    def test_source_errors_carry_component_note(self):
        class BrokenSource(io.RawIOBase):
            def readable(self):
                return True

            def readinto(self, b):
                raise OSError("connection reset")

        with self.assertRaises(OSError) as ctx:
            decode_quoted_printable(BrokenSource()).read()
        self.assertTrue(any("quoted-printable" in note for note in ctx.exception.__notes__))

    def test_header_q_word(self):
        self.assertEqual(decode_q_word(b"J=F6rg_Doe"), b"J\xf6rg Doe")
        self.assertEqual(decode_q_word(b"a=5Fb"), b"a_b")


if __name__ == "__main__":
    unittest.main()
