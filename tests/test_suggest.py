from __future__ import annotations

from gstrecon.reconcile.suggest import (
    is_likely_key_field,
    suggest_key_fields,
    suggest_mapping,
    suggest_setup,
)


def test_suggest_mapping_basic_groups():
    source = ["GSTIN of Supplier", "Invoice Number", "Taxable Value", "Vendor Name"]
    target = ["GSTIN", "Bill No", "Taxable Amount", "Supplier Name"]
    mapping = suggest_mapping(source, target)
    assert mapping == {
        "GSTIN of Supplier": "GSTIN",
        "Invoice Number": "Bill No",
        "Taxable Value": "Taxable Amount",
        "Vendor Name": "Supplier Name",
    }


def test_first_matching_group_wins():
    # "Invoice Date" hits the invoice group before the date group
    mapping = suggest_mapping(["Invoice Date"], ["Bill No", "Bill Date"])
    assert mapping == {"Invoice Date": "Bill No"}


def test_falls_through_to_next_group_when_no_target_found():
    # invoice group has no target candidate, the date group does
    mapping = suggest_mapping(["Invoice Date"], ["Doc Date"])
    assert mapping == {"Invoice Date": "Doc Date"}


def test_first_target_in_order_and_case_insensitive():
    mapping = suggest_mapping(["total amount"], ["Net AMOUNT", "Gross Amount"])
    assert mapping == {"total amount": "Net AMOUNT"}


def test_unmatched_headers_are_omitted_and_mapping_not_injective():
    mapping = suggest_mapping(["CGST", "SGST", "Remarks"], ["GST Paid"])
    # both tax components fall back to the gst group and share the target
    assert mapping == {"CGST": "GST Paid", "SGST": "GST Paid"}
    assert "Remarks" not in mapping


def test_empty_headers():
    assert suggest_mapping([], ["a"]) == {}
    assert suggest_mapping(["Invoice"], []) == {}


def test_key_field_detection():
    assert is_likely_key_field("Invoice Number")
    assert is_likely_key_field("bill_no")
    assert is_likely_key_field("Supplier GSTIN")
    assert is_likely_key_field("GST Reg No")
    assert is_likely_key_field("gst")
    assert not is_likely_key_field("IGST")
    assert not is_likely_key_field("Taxable Value")


def test_suggest_setup():
    mapping, keys = suggest_setup(
        ["GSTIN of Supplier", "Invoice Number", "Taxable Value"],
        ["Supplier GSTIN", "Bill No", "Taxable Amount"],
    )
    assert mapping["Invoice Number"] == "Bill No"
    assert keys == ["GSTIN of Supplier", "Invoice Number"]
    assert suggest_key_fields({"Taxable Value": "Taxable Amount"}) == []


def test_party_group_can_land_on_identifier_column():
    # "Supplier GSTIN" is the first target carrying "supplier"
    mapping = suggest_mapping(["Supplier Name"], ["Supplier GSTIN", "Vendor"])
    assert mapping == {"Supplier Name": "Supplier GSTIN"}


def test_key_fields_claim_each_target_once():
    mapping = suggest_mapping(["Invoice Number", "Invoice Date"], ["Bill No", "Bill Date"])
    # both land on "Bill No" through the invoice group; only the first becomes a key
    assert mapping == {"Invoice Number": "Bill No", "Invoice Date": "Bill No"}
    assert suggest_key_fields(mapping) == ["Invoice Number"]
