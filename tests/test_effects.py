import fakeredis

from effects import INVOICES_PATH, PageCache, redirect, revalidate_path


async def test_revalidate_drops_snapshot_and_is_idempotent(cache):
  await cache.set(INVOICES_PATH, [{"id": "inv-1"}])
  await cache.set("/dashboard", {"total": 1})

  await revalidate_path(INVOICES_PATH, cache)
  await revalidate_path(INVOICES_PATH, cache)

  assert await cache.get(INVOICES_PATH) is None
  assert await cache.get("/dashboard") == {"total": 1}


async def test_snapshot_is_stored_as_prefixed_json_with_ttl():
  client = fakeredis.FakeAsyncRedis(server=fakeredis.FakeServer(), decode_responses=True)
  cache = PageCache(client=client, prefix="pages:", ttl=30)

  await cache.set(INVOICES_PATH, [{"id": "inv-1", "amount": 1999}])

  assert await client.get("pages:/dashboard/invoices") == '[{"id": "inv-1", "amount": 1999}]'
  assert 0 < await client.ttl("pages:/dashboard/invoices") <= 30


async def test_revalidation_is_seen_by_every_worker():
  server = fakeredis.FakeServer()
  worker_a = PageCache(client=fakeredis.FakeAsyncRedis(server=server, decode_responses=True))
  worker_b = PageCache(client=fakeredis.FakeAsyncRedis(server=server, decode_responses=True))

  await worker_a.set(INVOICES_PATH, [{"id": "inv-1"}])
  await revalidate_path(INVOICES_PATH, worker_b)

  assert await worker_a.get(INVOICES_PATH) is None


async def test_unreachable_redis_behaves_like_a_miss():
  server = fakeredis.FakeServer()
  cache = PageCache(client=fakeredis.FakeAsyncRedis(server=server, decode_responses=True))
  server.connected = False

  assert await cache.set(INVOICES_PATH, ["rows"]) is False
  assert await cache.get(INVOICES_PATH) is None
  await revalidate_path(INVOICES_PATH, cache)


def test_redirect_is_a_value():
  r = redirect(INVOICES_PATH)
  assert r.kind == "redirect"
  assert r.to == "/dashboard/invoices"
