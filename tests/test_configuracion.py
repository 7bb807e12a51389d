import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from core.configuracion import BASE_DIR, ConfigSolar, cargar_configuracion, construir_config
from core.modelo import create_default_project
from core.sizing import INVERTER_SIZES_KVA, derive_metrics


class TestConstruirConfig(unittest.TestCase):
    def test_vacio_usa_defaults(self):
        with mock.patch.dict(os.environ, {}, clear=False):
            os.environ.pop("SOLAR_PROJECTS_PATH", None)
            cfg = construir_config({})
        self.assertEqual(INVERTER_SIZES_KVA, cfg.inverter_sizes_kva)
        self.assertEqual(500, cfg.debounce_ms)
        self.assertEqual("solarProjects.json", cfg.store_path.name)
        self.assertEqual("New Solar Project", cfg.defaults["project_name"])

    def test_claves_reconocidas(self):
        cfg = construir_config({
            "inversores_kva": [5, 1, 3],
            "paneles_w": [500],
            "debounce_ms": -10,
            "proyecto_defaults": {"peakSunHours": 4.5, "calc_method": "bill"},
            "opciones_dod": [{"value": 0.6}],
        })
        self.assertEqual((1.0, 3.0, 5.0), cfg.inverter_sizes_kva)
        self.assertEqual((500.0,), cfg.panel_wattage_options)
        self.assertEqual(0, cfg.debounce_ms)
        self.assertEqual(4.5, cfg.defaults["peak_sun_hours"])
        self.assertEqual("bill", cfg.defaults["calc_method"])
        self.assertEqual(0.6, cfg.dod_options[0]["value"])

    def test_valores_invalidos(self):
        malos = (
            {"inversores_kva": []},
            {"paneles_w": ["x"]},
            {"proyecto_defaults": {"noExiste": 1}},
            {"proyecto_defaults": {"id": "fijo"}},
            {"proyecto_defaults": {"calcMethod": "guess"}},
            {"opciones_dod": [{"label": "sin valor"}]},
        )
        for raw in malos:
            with self.assertRaises(ValueError, msg=str(raw)):
                construir_config(raw)

    def test_defaults_con_tipo_invalido_nombran_la_clave(self):
        malos = {
            "peakSunHours": "cinco",
            "panelWattage": -450,
            "batteryDoD": float("nan"),
            "isPeakLoadCustom": "quizas",
            "projectName": ["lista"],
        }
        for clave, valor in malos.items():
            with self.assertRaises(ValueError, msg=clave) as cm:
                construir_config({"proyecto_defaults": {clave: valor}})
            self.assertIn(f"proyecto_defaults.{clave}", str(cm.exception))

    def test_defaults_booleanos_desde_texto(self):
        cfg = construir_config({"proyecto_defaults": {"isPeakLoadCustom": "no", "hasBuiltInController": "yes"}})
        self.assertIs(False, cfg.defaults["is_peak_load_custom"])
        self.assertIs(True, cfg.defaults["has_built_in_controller"])

    def test_defaults_validos_no_rompen_el_calculo(self):
        cfg = construir_config({"proyecto_defaults": {"peakSunHours": 4, "projectName": 2026, "calcMethod": "bill"}})
        p = create_default_project(defaults=cfg.defaults)
        self.assertEqual("2026", p.project_name)
        # 10 kWh / (4 h * 80 %) = 3125 W
        self.assertAlmostEqual(3125.0, derive_metrics(p).required_panel_wattage)

    def test_debounce_y_dod_invalidos_nombran_la_clave(self):
        for raw, clave in (
            ({"debounce_ms": "rapido"}, "debounce_ms"),
            ({"debounce_ms": True}, "debounce_ms"),
            ({"opciones_dod": [{"value": "mucho"}]}, "opciones_dod[0].value"),
            ({"opciones_dod": [{"value": 1.5}]}, "opciones_dod[0].value"),
        ):
            with self.assertRaises(ValueError, msg=str(raw)) as cm:
                construir_config(raw)
            self.assertIn(clave, str(cm.exception))

    def test_variable_de_entorno_manda(self):
        with mock.patch.dict(os.environ, {"SOLAR_PROJECTS_PATH": "/tmp/otro.json"}):
            cfg = construir_config({"archivo_proyectos": "ignorado.json"})
        self.assertEqual(Path("/tmp/otro.json"), cfg.store_path)


class TestCargarConfiguracion(unittest.TestCase):
    def test_yaml_incluido_en_el_repo(self):
        cfg = cargar_configuracion(BASE_DIR / "config")
        self.assertIsInstance(cfg, ConfigSolar)
        self.assertEqual(10, len(cfg.inverter_sizes_kva))
        self.assertEqual((12.0, 24.0, 48.0), cfg.system_voltage_options)
        self.assertEqual(3, len(cfg.dod_options))

    def test_directorio_sin_archivo(self):
        with tempfile.TemporaryDirectory() as d:
            cfg = cargar_configuracion(Path(d))
        self.assertEqual(ConfigSolar().panel_wattage_options, cfg.panel_wattage_options)

    def test_yaml_que_no_es_dict(self):
        with tempfile.TemporaryDirectory() as d:
            (Path(d) / "parametros.yaml").write_text("- 1\n- 2\n", encoding="utf-8")
            with self.assertRaises(ValueError):
                cargar_configuracion(Path(d))


if __name__ == "__main__":
    unittest.main()
