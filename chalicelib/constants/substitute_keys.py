to_db = {
    'id': 'id_',
    'name': 'name_',
    'status': 'status_'
}

from_db = {
    'id_': 'id',
    'name_': 'name',
    'status_': 'status',
    'partkey': None,
    'sortkey': None
}
