import json

from twisted.web.test.requesthelper import DummyRequest

from launchpool.contracts.blueprints.launch_pool import Phase
from launchpool.contracts.resources.state import LaunchPoolStateResource
from tests.contracts.blueprints.test_utilities import LaunchPoolTestMixin


class LaunchPoolStateResourceTest(LaunchPoolTestMixin):
    def setUp(self) -> None:
        super().setUp()
        self.pool_id = self._create_launch_pool()
        self.resource = LaunchPoolStateResource(self.runner)

    def _get(self, args: dict[bytes, list[bytes]]) -> tuple[DummyRequest, dict]:
        request = DummyRequest([b''])
        request.args = args
        body = self.resource.render_GET(request)
        return request, json.loads(body)

    def test_state_during_sale(self):
        buyer = self.gen_random_address()
        self._fund_buyer(buyer, 0, 30, self.pool_id)
        self.call(self.pool_id, "buy", 0, 3, caller_id=buyer, timestamp=self._during_sale())

        other = self.gen_random_address()
        request, data = self._get({
            b'id': [self.pool_id.hex().encode()],
            b'timestamp': [str(self._during_sale()).encode()],
            b'buyers[]': [buyer.hex().encode(), other.hex().encode()],
        })

        self.assertIn(request.responseCode, (None, 200))
        self.assertTrue(data['success'])
        self.assertEqual(data['phases'], [Phase.OPEN])
        self.assertEqual(data['sale']['allocated_supply'], 103)
        self.assertEqual(data['sale']['buyers'], 1)
        self.assertEqual(data['sale']['total_paid'], {self.venues.assets[0].hex(): 30})
        self.assertEqual(data['settlement']['stage'], 0)
        self.assertEqual(data['buyers'][buyer.hex()], {'amount': 3, 'is_buyer': True, 'whitelist_claimed': False})
        self.assertFalse(data['buyers'][other.hex()]['is_buyer'])

    def test_state_after_airdrop(self):
        buyer = self.gen_random_address()
        self._fund_buyer(buyer, 0, 50, self.pool_id)
        self.call(self.pool_id, "buy", 0, 5, caller_id=buyer, timestamp=self._during_sale())
        self.call(self.pool_id, "airdrop", timestamp=self._after_sale())

        _, data = self._get({
            b'id': [self.pool_id.hex().encode()],
            b'timestamp': [str(self._after_sale()).encode()],
        })
        self.assertEqual(data['phases'], [Phase.AIRDROP_ELIGIBLE])
        self.assertTrue(data['sale']['airdropped'])
        self.assertEqual(data['settlement']['borrowed_amount'], 37_499)
        self.assertEqual(data['buyers'], {})

    def test_invalid_parameters(self):
        for args in ({}, {b'id': [b'zz']}, {b'id': [b'00' * 19]}):
            request, data = self._get(args)
            self.assertEqual(request.responseCode, 400)
            self.assertFalse(data['success'])

        request, data = self._get({b'id': [self.pool_id.hex().encode()], b'buyers[]': [b'1234']})
        self.assertEqual(request.responseCode, 400)

    def test_unknown_contract(self):
        request, data = self._get({b'id': [self.gen_random_contract_id().hex().encode()]})
        self.assertEqual(request.responseCode, 404)
        self.assertFalse(data['success'])

    def test_contract_is_not_a_launch_pool(self):
        request, _ = self._get({b'id': [self.venues.router.hex().encode()]})
        self.assertEqual(request.responseCode, 400)
