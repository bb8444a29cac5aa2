from libb import Setting

Setting.unlock()

postgresql = Setting()
postgresql.drivername='postgresql'
postgresql.hostname='localhost'
postgresql.username='postgres'
postgresql.password='postgres'
postgresql.database='test_db'
postgresql.port=5432
postgresql.timeout=30
postgresql.table='users'
postgresql.primary_key='id'
postgresql.auto_increment=True
postgresql.use_pool=False

sqlite = Setting()
sqlite.drivername='sqlite'
sqlite.database=':memory:'
sqlite.table='users'
sqlite.primary_key='id'
sqlite.auto_increment=True
sqlite.use_pool=False

Setting.lock()
