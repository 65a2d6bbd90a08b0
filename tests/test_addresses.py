import unittest
from email.parser import BytesHeaderParser
from pathlib import Path
from mime_reader import (
    Address,
    AddressSyntaxError,
    HeaderMissing,
    address_list,
    parse_address_list,
)

FIXTURES = Path(__file__).parent / "fixtures"

EXPECTED_CC = [
    ("Anatole Varin", "anatole@theplant.jp"),
    ("Varin Anatole", "a@theplant.jp"),
    ("", "lacoste-dev@theplant.jp"),
    ("畔上淳", "jazegami@fabricant.co.jp"),
    ("Alexandre Miroux", "amiroux@fabricant.co.jp"),
    ("康史 原田", "Y.Harada@trinet-logi.com"),
    ("水本匡俊 水本匡俊", "mmizumoto@fabricant.co.jp"),
    ("松安　賢治／システム開発室　室長", "K.Matsuyasu@trinet-logi.com"),
    ("伊藤　大／IT推進部協力会社", "H.Ito@trinet-logi.com"),
]


def load_headers(name):
    with open(FIXTURES / name, "rb") as f:
        return BytesHeaderParser().parse(f)


class TestAddressList(unittest.TestCase):
    def test_japanese_cc_fixture(self):
        addresses = address_list(load_headers("addresses_japanese.txt"), "Cc")
        self.assertEqual(len(addresses), len(EXPECTED_CC))
        for i, (name, mailbox) in enumerate(EXPECTED_CC):
            self.assertEqual(addresses[i].display_name, name, i)
            self.assertEqual(addresses[i].mailbox, mailbox, i)

    def test_key_is_case_insensitive(self):
        headers = load_headers("addresses_japanese.txt")
        self.assertEqual(address_list(headers, "from"), [Address("Anatole Varin", "anatole@theplant.jp")])

    def test_mapping_of_lists(self):
        fields = {"To": ["a@example.com, B <b@example.com>", "ignored@example.com"]}
        self.assertEqual(address_list(fields, "to"),
                         [Address("", "a@example.com"), Address("B", "b@example.com")])

    def test_missing_header(self):
        with self.assertRaises(HeaderMissing):
            address_list(load_headers("addresses_japanese.txt"), "Bcc")
        with self.assertRaises(HeaderMissing):
            address_list({"To": []}, "To")

    def test_groups(self):
        value = 'Team: one@example.com, "Two, Jr." <two@example.com>; three@example.com, undisclosed:;'
        self.assertEqual(parse_address_list(value), [
            Address("", "one@example.com"),
            Address("Two, Jr.", "two@example.com"),
            Address("", "three@example.com"),
        ])

    def test_comments_and_escapes(self):
        value = r'"Doe \"JD\" John" (work) <jd@example.com>, x@example.com (Mr. X, (nested))'
        self.assertEqual(parse_address_list(value), [
            Address('Doe "JD" John', "jd@example.com"),
            Address("", "x@example.com"),
        ])

    def test_commas_inside_angle_brackets(self):
        value = "Route <@a.example,@b.example:c@example.com>, d@example.com"
        self.assertEqual([a.mailbox for a in parse_address_list(value)],
                         ["@a.example,@b.example:c@example.com", "d@example.com"])

    def test_duplicates_and_empty_entries(self):
        value = "a@example.com, , a@example.com,"
        self.assertEqual(parse_address_list(value), [Address("", "a@example.com")] * 2)

    def test_encoded_name_across_quoted_and_bare(self):
        value = '"=?iso-8859-1?q?J=F6rg?=" =?iso-8859-1?q?_Doe?= <joerg@example.com>'
        self.assertEqual(parse_address_list(value), [Address("Jörg Doe", "joerg@example.com")])

    def test_literal_non_ascii_name(self):
        value = "Jörg Doe <joerg@example.com>".encode("utf-8")
        self.assertEqual(parse_address_list(value), [Address("Jörg Doe", "joerg@example.com")])

    def test_unterminated_quote(self):
        value = 'a@example.com, "Broken <b@example.com>'
        with self.assertRaises(AddressSyntaxError) as ctx:
            parse_address_list(value)
        self.assertEqual(ctx.exception.position, value.index('"'))
        self.assertEqual(ctx.exception.addresses, [Address("", "a@example.com")])

    def test_unterminated_comment(self):
        with self.assertRaises(AddressSyntaxError) as ctx:
            parse_address_list("a@example.com (oops")
        self.assertEqual(ctx.exception.position, 14)

    def test_error_position_counts_folding(self):
        value = "a@example.com,\r\n b@example.com (oops"
        with self.assertRaises(AddressSyntaxError) as ctx:
            parse_address_list(value)
        self.assertEqual(ctx.exception.position, value.index("("))
        self.assertEqual(len(ctx.exception.addresses), 1)

    def test_unterminated_angle(self):
        with self.assertRaises(AddressSyntaxError):
            parse_address_list("Name <a@example.com")

    def test_formatting(self):
        self.assertEqual(str(Address("Jane Doe", "jane@example.com")), "Jane Doe <jane@example.com>")
        self.assertEqual(str(Address("", "jane@example.com")), "jane@example.com")


if __name__ == "__main__":
    unittest.main()
