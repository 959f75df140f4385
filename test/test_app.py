from chalice.test import Client
from app import app

from chalicelib.constants import keys_structure


def test_health_check():
    with Client(app, stage_name='test') as client:
        response = client.http.get('/health-check')
        assert response.json_body == {'status': 'ok'}


def test_seed_database_lambda(gen_table, fake_aws):
    with Client(app, stage_name='test') as client:
        response = client.lambda_.invoke('seed_database', {'create_auth_users': False})
    assert response.payload['log'].splitlines()[-1] == 'Done! Check logs for any Errors.'
    assert len(gen_table.records(keys_structure.vendors_pk)) == 2
    assert fake_aws.identities == {}
