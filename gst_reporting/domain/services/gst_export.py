# gst_reporting/domain/services/gst_export.py
"""
Serialize GST returns into the government JSON filing schema.

GSTR-3B: From Gstr3bSummary (TaxBucket/ItcBucket structure)
GSTR-1:  From Gstr1Payload (gstr1_service.py)
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict

from gst_reporting.domain.models.gst import Gstr3bSummary
from gst_reporting.domain.models.period import Period
from gst_reporting.domain.services.gstr1_service import Gstr1Item, Gstr1Payload
from gst_reporting.domain.services.period_calculator import filing_period_token


def _d(val: Decimal | None) -> float:
    """Convert Decimal to float for JSON serialization."""
    if val is None:
        return 0.0
    return float(val)


def make_gstr3b_json(
    gstin: str,
    period: Period,
    summary: Gstr3bSummary,
) -> Dict[str, Any]:
    """
    Build GSTR-3B JSON from a Gstr3bSummary.

    ITC sections are emitted empty: input tax credit is not derived from
    outward supply data and has to be entered on the portal.
    """
    out = summary.outward_taxable_supplies
    zero = summary.outward_zero_rated
    rcm = summary.inward_reverse_charge
    itc = summary.itc_eligible

    return {
        "gstin": gstin,
        "ret_period": filing_period_token(period),
        "sup_details": {
            "osup_det": {
                "txval": _d(out.taxable_value),
                "iamt": _d(out.igst),
                "camt": _d(out.cgst),
                "samt": _d(out.sgst),
                "csamt": _d(out.cess),
            },
            "osup_zero": {
                "txval": _d(zero.taxable_value),
                "iamt": _d(zero.igst),
                "csamt": _d(zero.cess),
            },
            "osup_nil_exmp": {
                "txval": _d(summary.outward_nil_exempt),
            },
            "osup_nongst": {
                "txval": _d(summary.outward_non_gst),
            },
            "isup_rev": {
                "txval": _d(rcm.taxable_value),
                "iamt": _d(rcm.igst),
                "camt": _d(rcm.cgst),
                "samt": _d(rcm.sgst),
                "csamt": _d(rcm.cess),
            },
        },
        "itc_elg": {
            "itc_avl": [],
            "itc_rev": [],
            "itc_net": {
                "iamt": _d(itc.igst),
                "camt": _d(itc.cgst),
                "samt": _d(itc.sgst),
                "csamt": _d(itc.cess),
            },
            "itc_inelg": [],
        },
    }


def _items_json(items: list[Gstr1Item], with_split: bool = True) -> list[dict]:
    result = []
    for item in items:
        det = {
            "txval": _d(item.txval),
            "rt": _d(item.rt),
            "iamt": _d(item.igst),
        }
        if with_split:
            det["camt"] = _d(item.cgst)
            det["samt"] = _d(item.sgst)
        det["csamt"] = 0
        result.append({"num": item.num, "itm_det": det})
    return result


def make_gstr1_json(payload: Gstr1Payload) -> Dict[str, Any]:
    """
    Build GSTR-1 JSON from a Gstr1Payload.

    Field names follow the published GSTR-1 offline/API schema.
    """
    b2b_list = []
    for entry in payload.b2b:
        b2b_list.append({
            "ctin": entry.ctin,
            "inv": [
                {
                    "inum": inv.num,
                    "idt": inv.dt,
                    "val": _d(inv.val),
                    "pos": inv.pos,
                    "rchrg": inv.rchrg,
                    "inv_typ": inv.inv_typ,
                    "itms": _items_json(inv.itms),
                }
                for inv in entry.inv
            ],
        })

    # B2CL carries IGST only
    b2cl_list = []
    for entry in payload.b2cl:
        b2cl_list.append({
            "pos": entry.pos,
            "inv": [
                {
                    "inum": inv.num,
                    "idt": inv.dt,
                    "val": _d(inv.val),
                    "itms": _items_json(inv.itms, with_split=False),
                }
                for inv in entry.inv
            ],
        })

    b2cs_list = []
    for row in payload.b2cs:
        b2cs_list.append({
            "sply_ty": row.sply_ty,
            "pos": row.pos,
            "typ": row.typ,
            "txval": _d(row.txval),
            "rt": _d(row.rt),
            "iamt": _d(row.igst),
            "camt": _d(row.cgst),
            "samt": _d(row.sgst),
            "csamt": 0,
        })

    cdnr_list = []
    for entry in payload.cdnr:
        cdnr_list.append({
            "ctin": entry.ctin,
            "nt": [
                {
                    "ntty": note.ntty,
                    "nt_num": note.num,
                    "nt_dt": note.dt,
                    "val": _d(note.val),
                    "pos": note.pos,
                    "rchrg": note.rchrg,
                    "inv_typ": note.inv_typ,
                    "itms": _items_json(note.itms),
                }
                for note in entry.nt
            ],
        })

    cdnur_list = []
    for note in payload.cdnur:
        cdnur_list.append({
            "typ": note.typ,
            "ntty": note.ntty,
            "nt_num": note.num,
            "nt_dt": note.dt,
            "val": _d(note.val),
            "pos": note.pos,
            "itms": _items_json(note.itms, with_split=False),
        })

    nil_list = [
        {
            "sply_ty": row.sply_ty,
            "nil_amt": _d(row.nil_amt),
            "expt_amt": _d(row.expt_amt),
            "ngsup_amt": _d(row.ngsup_amt),
        }
        for row in payload.nil
    ]

    hsn_list = [
        {
            "num": row.num,
            "hsn_sc": row.hsn_sc,
            "desc": row.desc,
            "uqc": row.uqc,
            "qty": _d(row.qty),
            "val": _d(row.val),
            "txval": _d(row.txval),
            "iamt": _d(row.igst),
            "camt": _d(row.cgst),
            "samt": _d(row.sgst),
            "csamt": 0,
        }
        for row in payload.hsn
    ]

    doc_det = [
        {
            "doc_num": issue.doc_num,
            "docs": [
                {
                    "num": rng.num,
                    "from": rng.from_no,
                    "to": rng.to_no,
                    "totnum": rng.totnum,
                    "cancel": rng.cancel,
                    "net_issue": rng.net_issue,
                }
                for rng in issue.docs
            ],
        }
        for issue in payload.doc_issue
    ]

    return {
        "gstin": payload.gstin,
        "fp": payload.fp,
        "gt": _d(payload.gt),
        "cur_gt": _d(payload.cur_gt),
        "b2b": b2b_list,
        "b2cl": b2cl_list,
        "b2cs": b2cs_list,
        "cdnr": cdnr_list,
        "cdnur": cdnur_list,
        "exp": [],
        "nil": {"inv": nil_list},
        "hsn": {"data": hsn_list},
        "doc_issue": {"doc_det": doc_det},
    }
