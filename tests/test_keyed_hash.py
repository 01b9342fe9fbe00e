import pytest

from bf_keyed.keyed_hash import UINT64_MASK, KeyedHasher

# Key bytes 00 01 02 ... 0f from the SipHash paper's test vectors.
REFERENCE_K0 = 0x0706050403020100
REFERENCE_K1 = 0x0F0E0D0C0B0A0908


class TestDigest:
    def test_reference_vector_empty_message(self):
        hasher = KeyedHasher(REFERENCE_K0, REFERENCE_K1)
        assert hasher.digest(b"") == 0x726FDB47DD0E0E31

    def test_reference_vector_one_byte_message(self):
        hasher = KeyedHasher(REFERENCE_K0, REFERENCE_K1)
        assert hasher.digest(b"\x00") == 0x74F839C593DC67FD

    def test_digest_is_deterministic(self):
        a = KeyedHasher(12345, 67890)
        b = KeyedHasher(12345, 67890)
        assert a.digest(b"Kermit") == b.digest(b"Kermit")
        assert a.digest(b"Kermit") == a.digest(b"Kermit")

    def test_digest_fits_in_64_bits(self):
        hasher = KeyedHasher.random()
        for data in (b"", b"a", b"MissPiggy" * 20):
            assert 0 <= hasher.digest(data) <= UINT64_MASK

    def test_digest_is_never_negative(self):
        hashers = [KeyedHasher(REFERENCE_K0, REFERENCE_K1), KeyedHasher(UINT64_MASK, UINT64_MASK)]
        hashers += [KeyedHasher.random() for _ in range(4)]
        digests = [h.digest(bytes([i]) * (i % 17)) for h in hashers for i in range(256)]
        assert min(digests) >= 0
        assert max(digests) <= UINT64_MASK
        # Roughly half of all digests have the top bit set.
        assert any(d >> 63 for d in digests)

    def test_key_changes_digest(self):
        assert KeyedHasher(1, 2).digest(b"Gonzo") != KeyedHasher(2, 1).digest(b"Gonzo")


class TestSeeds:
    def test_seeds_stored_verbatim(self):
        hasher = KeyedHasher(UINT64_MASK, 0)
        assert hasher.k0 == UINT64_MASK
        assert hasher.k1 == 0
        assert hasher.to_wire() == {"k0": UINT64_MASK, "k1": 0}

    @pytest.mark.parametrize("seed", [-1, UINT64_MASK + 1])
    def test_out_of_range_seed_rejected(self, seed):
        with pytest.raises(ValueError):
            KeyedHasher(seed, 0)
        with pytest.raises(ValueError):
            KeyedHasher(0, seed)

    @pytest.mark.parametrize("seed", [1.5, "1", None, True])
    def test_non_integer_seed_rejected(self, seed):
        with pytest.raises(TypeError):
            KeyedHasher(seed, 0)

    def test_random_seeds_are_in_range_and_distinct(self):
        a = KeyedHasher.random()
        b = KeyedHasher.random()
        assert 0 <= a.k0 <= UINT64_MASK and 0 <= a.k1 <= UINT64_MASK
        assert a != b

    def test_from_wire_ignores_extra_fields(self):
        hasher = KeyedHasher.from_wire({"k0": 7, "k1": 9, "algorithm": "siphash-2-4"})
        assert hasher == KeyedHasher(7, 9)
        assert hash(hasher) == hash(KeyedHasher(7, 9))
