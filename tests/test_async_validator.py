#!/usr/bin/env python3
"""Unit tests for the per-key probe executor"""

import asyncio
import sys
import unittest
from pathlib import Path

import aiohttp

sys.path.insert(0, str(Path(__file__).parent.parent))
sys.path.insert(0, str(Path(__file__).parent))

from keychecker.key_core.exceptions import TransientProbeFailure
from keychecker.key_core.models import GeminiKey, Tier
from keychecker.key_engine.validation import (
    AsyncKeyValidator, ValidationConfig, FailureReason, JitterType, TierDetection
)
from fake_gemini import (
    FakeGeminiClient, SleepRecorder, make_key, generation_ok, cache_ok, api_error
)


def make_validator(tier_detection=TierDetection.NONE, max_attempts=3, **kwargs):
    config = ValidationConfig(max_attempts=max_attempts, base_delay=1.0, max_delay=10.0,
                              backoff_multiplier=2.0, jitter_type=JitterType.NONE,
                              tier_detection=tier_detection, **kwargs)
    sleeper = SleepRecorder()
    return AsyncKeyValidator(config, sleep=sleeper), sleeper


class TestGenerationProbe(unittest.TestCase):

    def setUp(self):
        self.key = GeminiKey.parse(make_key(1))

    def test_working_key_is_free_without_tier_signal(self):
        validator, sleeper = make_validator()
        client = FakeGeminiClient()

        result = asyncio.run(validator.validate(client, self.key))

        self.assertEqual(result.tier, Tier.FREE)
        self.assertEqual(result.attempts, 1)
        self.assertEqual(client.count("generate"), 1)
        self.assertEqual(client.count("cache"), 0)
        self.assertEqual(sleeper.delays, [])

    def test_rejected_key_short_circuits(self):
        validator, sleeper = make_validator()
        client = FakeGeminiClient(generation={
            self.key.value: [api_error(401, "UNAUTHENTICATED", "invalid credentials")]
        })

        result = asyncio.run(validator.validate(client, self.key))

        self.assertEqual(result.tier, Tier.INVALID)
        self.assertEqual(result.failure_reason, FailureReason.KEY_REJECTED)
        self.assertEqual(client.count("generate"), 1)
        self.assertEqual(sleeper.delays, [])

    def test_rate_limit_is_terminal(self):
        validator, sleeper = make_validator()
        client = FakeGeminiClient(generation={
            self.key.value: [api_error(429, "RESOURCE_EXHAUSTED", "Quota exceeded")]
        })

        result = asyncio.run(validator.validate(client, self.key))

        self.assertEqual(result.tier, Tier.RATE_LIMITED)
        self.assertEqual(client.count("generate"), 1)
        self.assertEqual(sleeper.delays, [])

    def test_transient_failure_then_success(self):
        validator, sleeper = make_validator()
        client = FakeGeminiClient(generation={
            self.key.value: [asyncio.TimeoutError(), api_error(503, "UNAVAILABLE"), generation_ok()]
        })

        result = asyncio.run(validator.validate(client, self.key))

        self.assertEqual(result.tier, Tier.FREE)
        self.assertEqual(result.attempts, 3)
        self.assertEqual(sleeper.delays, [1.0, 2.0])

    def test_retry_exhaustion_resolves_to_invalid(self):
        validator, sleeper = make_validator(max_attempts=3)
        client = FakeGeminiClient(generation={
            self.key.value: [aiohttp.ServerDisconnectedError()]
        })

        result = asyncio.run(validator.validate(client, self.key))

        self.assertEqual(result.tier, Tier.INVALID)
        self.assertEqual(result.failure_reason, FailureReason.RETRIES_EXHAUSTED)
        self.assertEqual(result.attempts, 3)
        self.assertEqual(client.count("generate"), 3)
        self.assertEqual(sleeper.delays, [1.0, 2.0])
        self.assertIn("connection_reset", result.detail)

    def test_unexpected_error_does_not_escape(self):
        validator, _ = make_validator()
        client = FakeGeminiClient(generation={self.key.value: [RuntimeError("boom")]})

        result = asyncio.run(validator.validate(client, self.key))

        self.assertEqual(result.tier, Tier.INVALID)
        self.assertEqual(result.failure_reason, FailureReason.UNKNOWN_ERROR)
        self.assertIn("boom", result.detail)

    def test_same_responses_same_tier(self):
        tiers = []
        for _ in range(2):
            validator, _ = make_validator()
            client = FakeGeminiClient(generation={
                self.key.value: [api_error(500, "INTERNAL"), api_error(403, "PERMISSION_DENIED")]
            })
            tiers.append(asyncio.run(validator.validate(client, self.key)).tier)
        self.assertEqual(tiers, [Tier.INVALID, Tier.INVALID])


class TestTierProbe(unittest.TestCase):

    def setUp(self):
        self.key = GeminiKey.parse(make_key(2))

    def test_cache_success_means_paid(self):
        validator, _ = make_validator(TierDetection.CACHE_PROBE)
        client = FakeGeminiClient(cache={self.key.value: [cache_ok()]})

        result = asyncio.run(validator.validate(client, self.key))

        self.assertEqual(result.tier, Tier.PAID)
        self.assertEqual(result.attempts, 2)
        self.assertEqual(client.count("cache"), 1)

    def test_cache_quota_means_free(self):
        validator, _ = make_validator(TierDetection.CACHE_PROBE)
        client = FakeGeminiClient(cache={
            self.key.value: [api_error(429, "RESOURCE_EXHAUSTED", "free tier cache storage")]
        })

        result = asyncio.run(validator.validate(client, self.key))

        self.assertEqual(result.tier, Tier.FREE)

    def test_tier_probe_exhaustion_keeps_key_free(self):
        validator, sleeper = make_validator(TierDetection.CACHE_PROBE, max_attempts=3)
        client = FakeGeminiClient(cache={self.key.value: [api_error(503, "UNAVAILABLE")]})

        result = asyncio.run(validator.validate(client, self.key))

        self.assertEqual(result.tier, Tier.FREE)
        self.assertEqual(result.attempts, 4)
        self.assertEqual(client.count("cache"), 3)
        self.assertEqual(sleeper.delays, [1.0, 2.0])
        self.assertIn("tier probe", result.detail)

    def test_no_tier_probe_for_rejected_key(self):
        validator, _ = make_validator(TierDetection.CACHE_PROBE)
        client = FakeGeminiClient(generation={self.key.value: [api_error(403, "PERMISSION_DENIED")]})

        result = asyncio.run(validator.validate(client, self.key))

        self.assertEqual(result.tier, Tier.INVALID)
        self.assertEqual(client.count("cache"), 0)

    def test_response_header_mode(self):
        validator, _ = make_validator(TierDetection.RESPONSE_HEADER,
                                      paid_tier_header="X-Tier", paid_tier_values=["paid"])
        client = FakeGeminiClient(default_generation=generation_ok({"X-Tier": "paid"}))

        result = asyncio.run(validator.validate(client, self.key))

        self.assertEqual(result.tier, Tier.PAID)
        self.assertEqual(client.count("cache"), 0)


class TestSingleAttempt(unittest.TestCase):

    def setUp(self):
        self.key = GeminiKey.parse(make_key(5))
        self.validator, _ = make_validator()

    def attempt(self, client):
        return asyncio.run(self.validator._attempt(
            client, self.key, self.validator.config.generation_url, {},
            self.validator.classifier.classify_generation
        ))

    def test_server_error_raised_as_transient_failure(self):
        client = FakeGeminiClient(generation={self.key.value: [api_error(503, "UNAVAILABLE", "overloaded")]})

        with self.assertRaises(TransientProbeFailure) as ctx:
            self.attempt(client)

        self.assertEqual(ctx.exception.failure_reason, FailureReason.SERVER_ERROR)
        self.assertFalse(ctx.exception.outcome.is_definitive)
        self.assertNotIn(self.key.value, str(ctx.exception))

    def test_transport_error_raised_as_transient_failure(self):
        client = FakeGeminiClient(generation={self.key.value: [aiohttp.ServerDisconnectedError()]})

        with self.assertRaises(TransientProbeFailure) as ctx:
            self.attempt(client)

        self.assertEqual(ctx.exception.failure_reason, FailureReason.CONNECTION_RESET)

    def test_definitive_outcome_returned(self):
        outcome = self.attempt(FakeGeminiClient())
        self.assertTrue(outcome.is_definitive)
        self.assertEqual(outcome.tier, Tier.FREE)


if __name__ == '__main__':
    unittest.main()
