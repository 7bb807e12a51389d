import unittest
from dataclasses import replace

from core.edicion import (
    add_appliance,
    apply_field_update,
    apply_field_updates,
    remove_appliance,
    replace_appliances,
    sync_record,
    update_appliance,
)
from core.modelo import CALC_AUDIT, CALC_BILL, ApplianceEntry, ProjectRecord, create_default_project


def _watt_hours(p: ProjectRecord) -> float:
    return sum(a.quantity * a.wattage * a.hours for a in p.appliances)


class TestSincronizacion(unittest.TestCase):
    def setUp(self):
        self.p = create_default_project(project_id="p1")

    def test_invariante_auditoria_tras_cada_mutacion(self):
        p = add_appliance(self.p, "Fridge", 1, 150, 24, appliance_id="f")
        self.assertAlmostEqual(_watt_hours(p) / 1000.0, p.daily_energy_kwh)

        p = add_appliance(p, "Lamp", "4", "10", "5", appliance_id="l")
        self.assertAlmostEqual(_watt_hours(p) / 1000.0, p.daily_energy_kwh)

        p = update_appliance(p, "f", "hours", 12)
        self.assertAlmostEqual(_watt_hours(p) / 1000.0, p.daily_energy_kwh)

        p = remove_appliance(p, "l")
        self.assertAlmostEqual(1.8, p.daily_energy_kwh)
        self.assertAlmostEqual(150.0, p.peak_load)

    def test_sync_es_punto_fijo(self):
        p = add_appliance(self.p, "Fan", 2, 60, 8, appliance_id="fan")
        una = sync_record(p)
        self.assertIs(una, sync_record(una))

    def test_sync_no_toca_modo_factura(self):
        p = replace(self.p, calc_method=CALC_BILL, daily_energy_kwh=7.5)
        self.assertIs(p, sync_record(p))

    def test_pico_manual_no_se_sobrescribe(self):
        p = apply_field_update(self.p, "isPeakLoadCustom", True)
        p = apply_field_update(p, "peakLoad", "2200")
        p = add_appliance(p, "Pump", 1, 750, 2)
        self.assertEqual(2200.0, p.peak_load)

    def test_volver_a_auditoria_resincroniza(self):
        p = add_appliance(self.p, "TV", 1, 100, 10, appliance_id="tv")
        p = apply_field_update(p, "calcMethod", CALC_BILL)
        p = apply_field_update(p, "dailyEnergyKwh", "12")
        self.assertEqual(12.0, p.daily_energy_kwh)

        p = apply_field_update(p, "calcMethod", CALC_AUDIT)
        self.assertAlmostEqual(1.0, p.daily_energy_kwh)


class TestApplyFieldUpdate(unittest.TestCase):
    def setUp(self):
        self.p = create_default_project(project_id="p1")

    def test_coercion_numerica(self):
        self.assertEqual(5.5, apply_field_update(self.p, "peakSunHours", "5.5").peak_sun_hours)
        self.assertEqual(0.0, apply_field_update(self.p, "peakSunHours", "abc").peak_sun_hours)
        self.assertEqual(0.0, apply_field_update(self.p, "panel_wattage", "").panel_wattage)
        self.assertEqual(0.0, apply_field_update(self.p, "panelWattage", None).panel_wattage)

    def test_valor_igual_devuelve_registro_equivalente(self):
        out = apply_field_update(self.p, "peakSunHours", "5")
        self.assertEqual(self.p.peak_sun_hours, out.peak_sun_hours)
        self.assertEqual(sync_record(self.p), out)

    def test_texto_y_booleanos(self):
        p = apply_field_updates(self.p, {"projectName": "Casa", "has_built_in_controller": "true"})
        self.assertEqual("Casa", p.project_name)
        self.assertTrue(p.has_built_in_controller)

    def test_metodo_invalido_se_ignora(self):
        p = apply_field_update(self.p, "calcMethod", "guess")
        self.assertEqual(CALC_AUDIT, p.calc_method)

    def test_campos_solo_lectura_y_desconocidos(self):
        with self.assertRaises(ValueError):
            apply_field_update(self.p, "id", "otro")
        with self.assertRaises(ValueError):
            apply_field_update(self.p, "lastUpdated", "2026")
        with self.assertRaises(ValueError):
            apply_field_update(self.p, "noExiste", 1)

    def test_no_muta_el_original(self):
        before = replace(self.p)
        apply_field_update(self.p, "projectName", "Otro")
        add_appliance(self.p, "X", 1, 1, 1)
        self.assertEqual(before, self.p)


class TestEquipos(unittest.TestCase):
    def test_valores_se_acotan(self):
        p = create_default_project(project_id="p1")
        p = add_appliance(p, "Heater", -2, -100, 30, appliance_id="h")
        a = p.appliances[0]
        self.assertEqual(0, a.quantity)
        self.assertEqual(0, a.wattage)
        self.assertEqual(24.0, a.hours)

    def test_cantidad_ausente_vale_uno(self):
        a = ApplianceEntry.from_dict({"id": "x", "name": "Lamp", "wattage": 10, "hours": 5})
        self.assertEqual(1, a.quantity)
        self.assertEqual(50.0, a.watt_hours)

        # presente pero ilegible sigue siendo 0
        self.assertEqual(0, ApplianceEntry.from_dict({"id": "y", "quantity": "abc"}).quantity)

    def test_reemplazo_desde_tabla(self):
        p = create_default_project(project_id="p1")
        p = replace_appliances(p, [
            {"id": "a", "name": "Router", "quantity": 1, "wattage": 10, "hours": 24},
            {"id": None, "name": "Laptop", "quantity": 1, "wattage": 65, "hours": float("nan")},
        ])
        self.assertEqual(2, len(p.appliances))
        self.assertTrue(p.appliances[1].id)
        self.assertEqual(0, p.appliances[1].hours)
        self.assertAlmostEqual(0.24, p.daily_energy_kwh)

    def test_campo_de_equipo_invalido(self):
        p = add_appliance(create_default_project(project_id="p1"), "TV", appliance_id="tv")
        with self.assertRaises(ValueError):
            update_appliance(p, "tv", "voltage", 120)


if __name__ == "__main__":
    unittest.main()
