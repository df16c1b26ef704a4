"""Smoke check against the configured backends: python run_checks.py"""

from fastapi.testclient import TestClient
from civic_reporter.main import app

client = TestClient(app)

print('ROOT:')
print(client.get('/').json())

print('\nHEALTH:')
print(client.get('/health').json())

print('\nMAPS CONFIG:')
config = client.get('/location/config').json()
print(config.get('error') or 'script available')

for label, path in [('DB HEALTH', '/health/db'), ('MAP', '/map/issues'), ('SEARCH', '/location/search?q=Belagavi')]:
    print(f'\n{label}:')
    try:
        resp = client.get(path)
        print(resp.status_code)
        try:
            print(resp.json())
        except Exception:
            print(resp.text)
    except Exception as e:
        print(f'{label} call raised exception:', e)
