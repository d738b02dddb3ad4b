"""
Tests for transaction classification (decoder.classifier.classify) and the
record predicates.
"""

from __future__ import annotations

import pytest

from txscope.core.exceptions import DivisionUndefined, MalformedTransaction
from txscope.decoder.classifier import classify
from txscope.decoder.models import AssetKind, TransactionStatus
from txscope.decoder.protocols import SYSTEM_PROGRAM_ID
from txscope.decoder.reconciler import reconcile
from txscope.rpc.models import InstructionRecord, TokenBalance

A = "9QCfNuQuxct1Xk9ytFYgxc5fThmTzL4pHQnSjjrVUrka"
B = "CzVqatmaK6GfyEWZUcWromDvpq3MFxqSrUweZgbjHngh"
C = "AmK2hPHoHktE2tcJWKbfMpYR3JiMdS3J19xGdHX4ZCLK"
D = "H6ARHf6YXhGYeQfUzQNGk6rDNnLBQKrenN712K4AQJEG"
S = "JBu1AL4obBcCMqKBBxhpWCNUt136ijcuMZLFvTP7iWdB"
USDC = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"

TRANSFER = [InstructionRecord(program_id=SYSTEM_PROGRAM_ID, accounts=(0, 1))]


def test_fee_added_back_payer_zero_recipient_one(make_tx):
    tx = make_tx([A, B], [1000, 1_000_000_000], [995_000, 1_000_995_000], fee=5000)
    rec = classify(tx)
    assert rec.payer == A
    assert rec.recipient == B
    assert rec.native_amount == 995_000
    assert rec.fee == 5000


def test_plain_transfer(make_tx):
    tx = make_tx(
        [A, B, SYSTEM_PROGRAM_ID],
        [10_000_000, 0, 1],
        [7_995_000, 2_000_000, 1],
        instructions=TRANSFER,
    )
    rec = classify(tx)
    assert rec.payer == A
    assert rec.recipient == B
    assert rec.native_amount == 2_000_000
    assert rec.status is TransactionStatus.SUCCESS
    assert rec.asset_kind is AssetKind.NATIVE
    assert rec.asset_mint is None
    assert rec.recipient != rec.payer
    assert rec.special_cases == frozenset()
    assert rec.pool_sides is None
    assert rec.bond_curve_legs is None
    assert not rec.recipient_ambiguous


def test_fee_only_transaction_recipient_is_payer(make_tx):
    tx = make_tx([A, SYSTEM_PROGRAM_ID], [10_000, 1], [5_000, 1])
    rec = classify(tx)
    assert rec.recipient == rec.payer == A
    assert rec.native_amount == 0


def test_failed_transaction_passes_error_through(make_tx):
    err = {"InstructionError": [0, {"Custom": 1}]}
    tx = make_tx([A, B], [10_000, 0], [5_000, 0], err=err)
    rec = classify(tx)
    assert rec.status is TransactionStatus.FAILED
    assert rec.error is err
    assert not rec.is_successful
    assert rec.native_amount == 0


def test_other_signer_with_loss_becomes_payer(make_tx):
    # A only pays the fee (adjusted net 0); signer S funds the transfer to B.
    tx = make_tx(
        [A, S, B, SYSTEM_PROGRAM_ID],
        [1_000_000, 5_000_000, 0, 1],
        [995_000, 3_000_000, 2_000_000, 1],
        num_signers=2,
        instructions=[InstructionRecord(program_id=SYSTEM_PROGRAM_ID, accounts=(1, 2))],
    )
    rec = classify(tx)
    assert rec.payer == S
    assert rec.recipient == B
    assert rec.native_amount == 2_000_000


def test_position_zero_stays_payer_when_it_lost_funds(make_tx):
    tx = make_tx(
        [A, S, B],
        [5_000_000, 5_000_000, 0],
        [2_995_000, 4_000_000, 3_000_000],
        num_signers=2,
    )
    assert classify(tx).payer == A


def test_recipient_tie_skips_program_account(make_tx):
    tx = make_tx(
        [A, SYSTEM_PROGRAM_ID, C],
        [100_000, 1, 0],
        [93_000, 1_001, 1_000],
        instructions=[InstructionRecord(program_id=SYSTEM_PROGRAM_ID, accounts=(0, 2))],
    )
    rec = classify(tx)
    assert rec.recipient == C
    assert rec.native_amount == 1_000
    assert rec.recipient_ambiguous


def test_recipient_tie_prefers_writable_account(make_tx):
    tx = make_tx(
        [A, C, D],
        [100_000, 0, 0],
        [93_000, 1_000, 1_000],
        writable=[True, False, True],
    )
    rec = classify(tx)
    assert rec.recipient == D
    assert rec.recipient_ambiguous


def test_recipient_tie_falls_back_to_earliest(make_tx):
    tx = make_tx([A, C, D], [100_000, 0, 0], [93_000, 1_000, 1_000])
    rec = classify(tx)
    assert rec.recipient == C
    assert rec.recipient_ambiguous


def test_classification_is_deterministic(make_tx):
    tx = make_tx([A, B], [10_000_000, 0], [7_995_000, 2_000_000])
    first, second = classify(tx, label="run"), classify(tx, label="run")
    assert first == second
    assert first.to_dict() == second.to_dict()


def test_explicit_deltas_and_label(make_tx):
    tx = make_tx([A, B], [10_000_000, 0], [7_995_000, 2_000_000])
    rec = classify(tx, reconcile(tx), label="as-of-2024")
    assert rec.label == "as-of-2024"
    assert rec == classify(tx, label="as-of-2024")


def test_malformed_transaction_fails_fast(make_tx):
    tx = make_tx([A, B], [10_000_000], [7_995_000, 2_000_000])
    with pytest.raises(MalformedTransaction):
        classify(tx)


def test_token_transfer_dominates(make_tx):
    tx = make_tx(
        [A, C, D],
        [1_000_000, 2_039_280, 2_039_280],
        [995_000, 2_039_280, 2_039_280],
        pre_tokens=[
            TokenBalance(account_index=1, mint=USDC, amount=10_000_000, decimals=6, owner=A),
            TokenBalance(account_index=2, mint=USDC, amount=0, decimals=6, owner=B),
        ],
        post_tokens=[
            TokenBalance(account_index=1, mint=USDC, amount=5_000_000, decimals=6, owner=A),
            TokenBalance(account_index=2, mint=USDC, amount=5_000_000, decimals=6, owner=B),
        ],
    )
    rec = classify(tx)
    assert rec.asset_kind is AssetKind.TOKEN
    assert rec.asset_mint == USDC
    assert rec.is_token_transfer
    assert rec.native_amount == 0


def test_native_dominates_dust_token(make_tx):
    tx = make_tx(
        [A, B, C],
        [2_000_000_000, 0, 2_039_280],
        [999_995_000, 1_000_000_000, 2_039_280],
        pre_tokens=[TokenBalance(account_index=2, mint=USDC, amount=0, decimals=6, owner=A)],
        post_tokens=[TokenBalance(account_index=2, mint=USDC, amount=1, decimals=6, owner=A)],
    )
    rec = classify(tx)
    assert rec.asset_kind is AssetKind.NATIVE
    assert not rec.is_token_transfer


def test_predicates(make_tx):
    tx = make_tx([A, B], [10_000_000, 0], [7_995_000, 2_000_000])
    rec = classify(tx)
    assert rec.is_payer(A) and not rec.is_payer(B)
    assert rec.is_recipient(B) and not rec.is_recipient(A)
    assert rec.payment_amount == 2_000_000
    assert rec.payment_amount_sol == pytest.approx(0.002)
    assert rec.net_amount(A) == 2_000_000 - 5000
    assert rec.net_amount(B) == 2_000_000
    assert not rec.is_high_value()
    assert rec.is_high_value(threshold_lamports=2_000_000)
    assert not rec.is_high_value(threshold_lamports=2_000_001)


def test_high_value_default_threshold(make_tx):
    big = 1000 * 1_000_000_000
    tx = make_tx([A, B], [big + 10_000, 0], [5_000, big])
    assert classify(tx).is_high_value()


def test_quote_ratio_without_pool_sides(make_tx):
    tx = make_tx([A, B], [10_000_000, 0], [7_995_000, 2_000_000])
    rec = classify(tx)
    with pytest.raises(DivisionUndefined):
        rec.quote_ratio()
    with pytest.raises(ZeroDivisionError):
        rec.quote_ratio()


def test_to_dict_shape(make_tx):
    tx = make_tx([A, B], [10_000_000, 0], [7_995_000, 2_000_000], err=None)
    d = classify(tx).to_dict()
    assert d["payer"] == A
    assert d["recipient"] == B
    assert d["status"] == "success"
    assert d["asset_kind"] == "native"
    assert d["special_cases"] == []
    assert d["direction"] is None
