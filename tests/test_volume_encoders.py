"""
Tests for volume commitments (hash mode and cofhe mode).
"""

import hashlib
import hmac
from concurrent.futures import ThreadPoolExecutor

import pytest
from eth_abi import encode
from eth_account import Account
from eth_utils import keccak

from batchsettle.core.settings import EncoderSettings
from batchsettle.protocol.enums import EncoderMode, FheType
from batchsettle.protocol.errors import InvalidConfiguration, InvalidSecurityZone
from batchsettle.security.volume import (
    MAX_UINT128,
    CofheVolumeEncoder,
    HashCommitmentEncoder,
    create_volume_encoder,
    normalize_security_zone,
    open_sealed_volume,
)
from batchsettle.security.volume.cofhe import compute_ct_hash, signing_digest

from factories import SWAP_HANDLER, TEST_PRIVATE_KEY, TEST_SIGNER_ADDRESS

CHAIN_ID = 11155111


@pytest.fixture
def cofhe():
    return CofheVolumeEncoder(
        private_key=TEST_PRIVATE_KEY,
        sender=SWAP_HANDLER,
        chain_id=CHAIN_ID,
    )


class TestHashCommitmentEncoder:
    def test_commitment_matches_sha256_and_hmac(self):
        encoder = HashCommitmentEncoder("shared-secret")
        magnitude = 100_000_000_000_000_000
        raw = magnitude.to_bytes(32, "big")

        volume = encoder.encode(magnitude)

        assert volume.ct_hash_bytes == hashlib.sha256(raw).digest()
        assert volume.signature == hmac.new(
            b"shared-secret", magnitude.to_bytes(16, "big"), hashlib.sha256
        ).digest()
        assert volume.security_zone == 0
        assert volume.utype == FheType.UINT128 == 6

    def test_signature_covers_uint128_encoding(self):
        """The HMAC input is 16 bytes, not the 32-byte hash input."""
        volume = HashCommitmentEncoder("k").encode(MAX_UINT128)
        assert volume.signature == hmac.new(b"k", b"\xff" * 16, hashlib.sha256).digest()
        assert volume.signature != hmac.new(b"k", b"\x00" * 16 + b"\xff" * 16, hashlib.sha256).digest()

    def test_deterministic(self):
        encoder = HashCommitmentEncoder("k")
        assert encoder.encode(42) == encoder.encode(42)

    def test_secret_changes_signature_not_hash(self):
        a = HashCommitmentEncoder("a").encode(42)
        b = HashCommitmentEncoder("b").encode(42)
        assert a.ct_hash == b.ct_hash
        assert a.signature != b.signature

    @pytest.mark.parametrize("magnitude", [-1, MAX_UINT128 + 1])
    def test_rejects_out_of_range_magnitude(self, magnitude):
        with pytest.raises(InvalidConfiguration):
            HashCommitmentEncoder("k").encode(magnitude)

    def test_rejects_non_zero_zone(self):
        with pytest.raises(InvalidConfiguration):
            HashCommitmentEncoder("k").encode(1, security_zone=3)

    def test_requires_secret(self):
        with pytest.raises(InvalidConfiguration):
            HashCommitmentEncoder("")


class TestSealedVolumes:
    def test_hex_and_base64_payloads(self):
        expected = (
            int.from_bytes(hmac.new(b"s", b"\xde\xad\xbe\xef", hashlib.sha256).digest(), "big")
            % 10 ** 18
        )
        assert open_sealed_volume("0xdeadbeef", "s") == expected
        assert open_sealed_volume("3q2+7w==", "s") == expected

    def test_value_below_modulus(self):
        assert 0 <= open_sealed_volume("0x00112233", "secret") < 10 ** 18


class TestSecurityZone:
    @pytest.mark.parametrize(
        "zone,expected",
        [(-128, 128), (127, 127), (0, 0), (-1, 255)],
    )
    def test_normalization(self, zone, expected):
        assert normalize_security_zone(zone) == expected

    @pytest.mark.parametrize("zone", [-129, 128, 1000])
    def test_out_of_range(self, zone):
        with pytest.raises(InvalidSecurityZone):
            normalize_security_zone(zone)

    def test_construction_rejects_bad_zone(self):
        with pytest.raises(InvalidSecurityZone):
            CofheVolumeEncoder(TEST_PRIVATE_KEY, SWAP_HANDLER, CHAIN_ID, security_zone=200)

    def test_per_call_zone_rejected_before_salt_advances(self, cofhe):
        with pytest.raises(InvalidSecurityZone):
            cofhe.encode(5, security_zone=-200)
        assert cofhe.salt == 0


class TestCofheVolumeEncoder:
    def test_same_magnitude_gives_distinct_handles(self, cofhe):
        first = cofhe.encode(10 ** 17)
        second = cofhe.encode(10 ** 17)

        assert first.ct_hash != second.ct_hash
        assert len(first.signature) == 65
        assert len(second.signature) == 65
        assert cofhe.salt == 2

    def test_signatures_recover_to_signer(self, cofhe):
        for _ in range(2):
            volume = cofhe.encode(10 ** 17)
            digest = signing_digest(volume.ct_hash, volume.utype, volume.security_zone, cofhe.sender, CHAIN_ID)
            recovered = Account._recover_hash(digest, signature=volume.signature)
            assert recovered == TEST_SIGNER_ADDRESS == cofhe.signer_address

    def test_recovery_id_offset_by_27(self, cofhe):
        assert cofhe.encode(1).signature[64] in (27, 28)

    def test_metadata_in_low_bits(self):
        encoder = CofheVolumeEncoder(TEST_PRIVATE_KEY, SWAP_HANDLER, CHAIN_ID, security_zone=-128)
        volume = encoder.encode(77)
        assert volume.ct_hash & 0xFFFF == (6 << 8) | 128
        assert volume.security_zone == 128
        assert volume.utype == 6

    def test_first_handle_uses_salt_zero(self, cofhe):
        magnitude = 123456789
        salt_hash = keccak(encode(["uint256"], [0]))
        pre_hash = keccak(encode(["uint256", "address", "bytes32"], [magnitude, cofhe.sender, salt_hash]))
        expected = (int.from_bytes(pre_hash, "big") >> 16 << 16) | (6 << 8)

        assert cofhe.encode(magnitude).ct_hash == expected
        assert compute_ct_hash(magnitude, cofhe.sender, 0, 6, 0) == expected

    def test_digest_layout(self, cofhe):
        ct_hash = 0xAB << 240
        packed = (
            ct_hash.to_bytes(32, "big")
            + bytes([6, 255])
            + bytes.fromhex(SWAP_HANDLER[2:])
            + CHAIN_ID.to_bytes(32, "big")
        )
        assert signing_digest(ct_hash, 6, 255, cofhe.sender, CHAIN_ID) == keccak(packed)

    def test_concurrent_encodes_never_share_a_salt(self, cofhe):
        with ThreadPoolExecutor(max_workers=8) as pool:
            handles = list(pool.map(lambda _: cofhe.encode(1), range(64)))

        assert len({h.ct_hash for h in handles}) == 64
        assert cofhe.salt == 64

    def test_rejects_bad_key(self):
        with pytest.raises(InvalidConfiguration):
            CofheVolumeEncoder("0x1234", SWAP_HANDLER, CHAIN_ID)

    def test_rejects_bad_sender(self):
        with pytest.raises(InvalidConfiguration):
            CofheVolumeEncoder(TEST_PRIVATE_KEY, "0x1234", CHAIN_ID)

    def test_rejects_negative_magnitude(self, cofhe):
        with pytest.raises(InvalidConfiguration):
            cofhe.encode(-1)
        assert cofhe.salt == 0


class TestCreateVolumeEncoder:
    def test_hash_mode(self):
        settings = EncoderSettings(mode=EncoderMode.HASH, shared_secret="s")
        assert isinstance(create_volume_encoder(settings), HashCommitmentEncoder)

    def test_hash_mode_requires_secret(self):
        with pytest.raises(InvalidConfiguration):
            create_volume_encoder(EncoderSettings(mode=EncoderMode.HASH, shared_secret=None))

    def test_cofhe_mode(self):
        settings = EncoderSettings(
            mode=EncoderMode.COFHE,
            signer_private_key=TEST_PRIVATE_KEY,
            sender=SWAP_HANDLER,
            security_zone=-1,
        )
        encoder = create_volume_encoder(settings)
        assert isinstance(encoder, CofheVolumeEncoder)
        assert encoder.encode(1).security_zone == 255

    def test_cofhe_mode_requires_sender(self):
        settings = EncoderSettings(mode=EncoderMode.COFHE, signer_private_key=TEST_PRIVATE_KEY)
        with pytest.raises(InvalidConfiguration):
            create_volume_encoder(settings)

    def test_cofhe_mode_zone_out_of_range(self):
        settings = EncoderSettings(
            mode=EncoderMode.COFHE,
            signer_private_key=TEST_PRIVATE_KEY,
            sender=SWAP_HANDLER,
            security_zone=300,
        )
        with pytest.raises(InvalidSecurityZone):
            create_volume_encoder(settings)
