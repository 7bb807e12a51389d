import itertools
import unittest
from dataclasses import replace

from core.almacen import MemoryStore, dumps_records
from core.edicion import add_appliance, apply_field_update
from core.modelo import create_default_project
from core.repositorio import ProjectRepository


class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def monotonic_ms(self) -> float:
        return self.now

    def timestamp(self) -> str:
        return f"T{self.now:012.0f}"


class StoreQueFalla:
    def __init__(self, falla_load=False, falla_save=True):
        self.falla_load = falla_load
        self.falla_save = falla_save
        self.saved = []

    def load(self):
        if self.falla_load:
            raise RuntimeError("store caído")
        return []

    def save_all(self, records):
        if self.falla_save:
            raise OSError("disco lleno")
        self.saved.append(records)


def _repo(store=None, clock=None):
    ids = (f"p{i}" for i in itertools.count(1))
    store = store if store is not None else MemoryStore()
    clock = clock or FakeClock()
    repo = ProjectRepository(store, clock=clock, debounce_ms=500, id_factory=lambda: next(ids))
    repo.load()
    return repo, store, clock


class TestAutosave(unittest.TestCase):
    def test_debounce_coalesce_en_una_escritura(self):
        repo, store, clock = _repo()
        p = repo.create_project("Casa")
        self.assertEqual(1, store.writes)

        for t, nombre in ((0, "A"), (100, "AB"), (200, "ABC")):
            clock.now = t
            p = apply_field_update(p, "clientName", nombre)
            repo.update_project(p)

        clock.now = 600
        self.assertEqual(0, repo.poll())
        self.assertEqual(1, store.writes)
        self.assertTrue(repo.has_pending_writes(p.id))

        clock.now = 700
        self.assertEqual(1, repo.poll())
        self.assertEqual(2, store.writes)
        self.assertIn('"clientName": "ABC"', store.slot)
        self.assertEqual("T000000000700", repo.get(p.id).last_updated)

        clock.now = 5000
        self.assertEqual(0, repo.poll())
        self.assertEqual(2, store.writes)

    def test_sin_cambios_no_escribe_ni_sella(self):
        repo, store, clock = _repo()
        p = repo.create_project()
        antes = repo.get(p.id).last_updated

        clock.now = 50
        repo.update_project(replace(p))
        clock.now = 1000
        repo.poll()

        self.assertEqual(1, store.writes)
        self.assertEqual(antes, repo.get(p.id).last_updated)

    def test_flush_confirma_sin_esperar(self):
        repo, store, clock = _repo()
        p = repo.create_project()
        repo.update_project(add_appliance(p, "TV", 1, 100, 4, appliance_id="tv"))

        self.assertEqual(1, repo.flush(p.id))
        self.assertFalse(repo.has_pending_writes())
        self.assertEqual(2, store.writes)
        self.assertEqual(0, repo.flush())

    def test_update_de_id_desconocido(self):
        repo, store, _ = _repo()
        self.assertFalse(repo.update_project(create_default_project(project_id="fantasma")))
        self.assertFalse(repo.has_pending_writes())
        self.assertEqual(0, store.writes)


class TestEscriturasInmediatas(unittest.TestCase):
    def test_crear_usa_defaults_y_escribe(self):
        repo, store, clock = _repo()
        clock.now = 42
        p = repo.create_project()

        self.assertEqual("p1", p.id)
        self.assertEqual("New Solar Project", p.project_name)
        self.assertEqual("T000000000042", p.last_updated)
        self.assertEqual(1, store.writes)
        self.assertEqual([p], repo.list_projects())

    def test_renombrar_inmediato_y_no_revertido(self):
        repo, store, clock = _repo()
        p = repo.create_project("Viejo")
        repo.update_project(apply_field_update(p, "clientName", "Cliente"))

        clock.now = 100
        r = repo.rename_project(p.id, "Nuevo")
        self.assertEqual("Nuevo", r.project_name)
        self.assertEqual("T000000000100", r.last_updated)
        self.assertEqual(2, store.writes)
        self.assertIn('"projectName": "Nuevo"', store.slot)

        clock.now = 1000
        repo.poll()
        final = repo.get(p.id)
        self.assertEqual("Nuevo", final.project_name)
        self.assertEqual("Cliente", final.client_name)

    def test_renombrar_con_nombre_vacio_conserva_el_actual(self):
        repo, store, clock = _repo()
        p = repo.create_project("Casa")

        clock.now = 100
        self.assertEqual("Casa", repo.rename_project(p.id, "   ").project_name)
        self.assertEqual(p.last_updated, repo.get(p.id).last_updated)
        self.assertEqual(1, store.writes)

        self.assertEqual("Finca", repo.rename_project(p.id, "  Finca ").project_name)

    def test_renombrar_inexistente(self):
        repo, store, _ = _repo()
        self.assertIsNone(repo.rename_project("nada", "X"))
        self.assertEqual(0, store.writes)

    def test_orden_mas_reciente_primero(self):
        repo, _, clock = _repo()
        for t in (10, 20, 30):
            clock.now = t
            repo.create_project(f"P{t}")

        nombres = [p.project_name for p in repo.list_projects()]
        self.assertEqual(["P30", "P20", "P10"], nombres)
        self.assertEqual(["P10", "P20", "P30"], [p.project_name for p in repo.list_projects(most_recent_first=False)])


class TestBorrado(unittest.TestCase):
    def test_dos_fases(self):
        repo, store, clock = _repo()
        p = repo.create_project()

        self.assertFalse(repo.request_delete("nada"))
        self.assertTrue(repo.request_delete(p.id))
        self.assertEqual(p.id, repo.pending_delete)

        repo.cancel_delete()
        self.assertIsNone(repo.pending_delete)
        self.assertIsNotNone(repo.get(p.id))
        self.assertFalse(repo.confirm_delete())

        repo.request_delete(p.id)
        self.assertTrue(repo.confirm_delete())
        self.assertIsNone(repo.get(p.id))
        self.assertEqual("[]", store.slot)

    def test_borrado_cancela_autosave_pendiente(self):
        repo, store, clock = _repo()
        p = repo.create_project()
        repo.update_project(apply_field_update(p, "clientName", "X"))

        repo.request_delete(p.id)
        repo.confirm_delete()
        escrituras = store.writes

        clock.now = 2000
        self.assertEqual(0, repo.poll())
        self.assertEqual(escrituras, store.writes)
        self.assertEqual([], repo.list_projects())


class TestCargaYFallos(unittest.TestCase):
    def test_round_trip_exacto(self):
        p = create_default_project("Casa", project_id="abc", timestamp="2026-01-01T00:00:00.000+00:00")
        p = add_appliance(p, "Fridge", 1, 150, 24, appliance_id="f1")
        p = apply_field_update(p, "clientName", "Ana")
        raw = dumps_records([p.to_dict()])

        repo, store, _ = _repo(store=MemoryStore(raw))
        self.assertEqual([p], repo.list_projects())
        self.assertTrue(repo.save_all())
        self.assertEqual(raw, store.slot)

    def test_slot_corrupto_lista_vacia(self):
        for raw in ("{no es json", '{"id": 1}', "42"):
            repo, _, _ = _repo(store=MemoryStore(raw))
            self.assertEqual([], repo.list_projects(), raw)

    def test_store_que_lanza_en_load(self):
        repo, _, _ = _repo(store=StoreQueFalla(falla_load=True))
        self.assertEqual([], repo.list_projects())

    def test_fallo_al_guardar_no_propaga(self):
        store = StoreQueFalla(falla_save=True)
        repo, _, clock = _repo(store=store)

        p = repo.create_project("Offline")
        self.assertEqual("Offline", repo.get(p.id).project_name)
        self.assertFalse(repo.save_all())

        repo.update_project(apply_field_update(p, "clientName", "Z"))
        clock.now = 1000
        repo.poll()
        self.assertEqual("Z", repo.get(p.id).client_name)

        # al recuperarse el store, el siguiente commit escribe
        store.falla_save = False
        repo.update_project(repo.get(p.id))
        clock.now = 2000
        repo.poll()
        self.assertEqual(1, len(store.saved))

    def test_renombrado_fallido_se_reintenta_al_recuperarse(self):
        store = StoreQueFalla(falla_save=False)
        repo, _, clock = _repo(store=store)
        p = repo.create_project("Viejo")

        store.falla_save = True
        clock.now = 100
        repo.rename_project(p.id, "Nuevo")

        store.falla_save = False
        repo.update_project(repo.get(p.id))
        clock.now = 1000
        repo.poll()
        self.assertEqual("Nuevo", store.saved[-1][0]["projectName"])

    def test_creacion_fallida_se_reintenta_al_recuperarse(self):
        store = StoreQueFalla(falla_save=True)
        repo, _, clock = _repo(store=store)
        p = repo.create_project("Offline")

        store.falla_save = False
        repo.update_project(repo.get(p.id))
        clock.now = 1000
        repo.poll()
        self.assertEqual(1, len(store.saved))
        self.assertEqual("Offline", store.saved[0][0]["projectName"])

    def test_registro_parcial_recibe_defaults(self):
        raw = '[{"id": "x", "projectName": "Legacy", "systemEfficiency": 0.75}]'
        repo, _, _ = _repo(store=MemoryStore(raw))
        p = repo.get("x")
        self.assertEqual("Legacy", p.project_name)
        self.assertEqual(75.0, p.system_efficiency)
        self.assertEqual(450.0, p.panel_wattage)
        self.assertEqual([], p.appliances)


if __name__ == "__main__":
    unittest.main()
