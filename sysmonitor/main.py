"""
Point d'entrée principal du Watchman System Monitor

Ce module assemble les composants de l'agent et peut être exécuté :
- En mode service (cycles périodiques jusqu'à l'arrêt)
- En mode échantillon unique
- En mode test (échantillon + vérification de l'API)
"""

import json
import signal
import argparse
import threading

from sysmonitor.core.config import AgentConfig, create_default_config
from sysmonitor.core.dispatcher import PluginDispatcher
from sysmonitor.core.logger import AgentLogger
from sysmonitor.core.sampler import SystemSampler
from sysmonitor.core.scheduler import MonitorScheduler
from sysmonitor.plugins.api import ApiPlugin


class SystemMonitorAgent:
    """
    Agent de surveillance principal

    Cette classe relie l'échantillonneur, les plugins et le planificateur.
    """

    def __init__(self, config_path=None):
        """
        Initialise l'agent de surveillance

        Args:
            config_path: Chemin vers le fichier de configuration
        """
        self.config = AgentConfig(config_path)

        self.logger = AgentLogger(self.config)
        self.app_logger = self.logger.get_logger()

        # Événement d'arrêt partagé : il annule aussi les mesures CPU en cours
        self.shutdown_event = threading.Event()

        self.sampler = SystemSampler(self.config, self.logger, stop_event=self.shutdown_event)
        self.dispatcher = PluginDispatcher(self.config, self.logger)
        self.scheduler = None

        self.running = False

        self.logger.log_startup_info()
        self.app_logger.info("Watchman System Monitor initialisé")

    def run_cycle(self):
        """
        Exécute un cycle : échantillonnage, affichage console, distribution
        """
        snapshot = self.sampler.sample()
        print(snapshot.format_line(), flush=True)

        results = self.dispatcher.dispatch(snapshot)
        failed_plugins = [name for name, success in results.items() if not success]
        if failed_plugins:
            self.app_logger.warning(f"Plugins en échec pour ce cycle: {', '.join(failed_plugins)}")

        return snapshot

    def run_service_mode(self):
        """
        Lance l'agent en mode service jusqu'à réception d'un signal d'arrêt
        """
        self.app_logger.info("Démarrage du Watchman System Monitor en mode service")
        print("Starting system monitor...")

        try:
            self._setup_signal_handlers()

            self.scheduler = MonitorScheduler(
                self.config,
                self.logger,
                self.run_cycle,
                stop_event=self.shutdown_event
            )
            self.scheduler.start()
            self.running = True

            while self.running and not self.shutdown_event.is_set():
                self.shutdown_event.wait(timeout=1.0)

        except KeyboardInterrupt:
            self.app_logger.info("Interruption clavier détectée")
        finally:
            self.shutdown()

    def run_once(self):
        """
        Effectue un seul cycle

        Returns:
            SystemUsageSnapshot: Échantillon produit
        """
        self.app_logger.info("=== Échantillonnage unique ===")
        try:
            return self.run_cycle()
        finally:
            self.sampler.close()
            self.dispatcher.close()

    def run_test_mode(self):
        """
        Lance un échantillon de test et vérifie la connexion à l'API

        Returns:
            dict: Statut de l'agent après le test
        """
        self.app_logger.info("=== Mode test ===")
        try:
            self.run_cycle()

            for plugin in self.dispatcher.plugins:
                if isinstance(plugin, ApiPlugin):
                    success, message = plugin.test_connection()
                    print(f"{'✅' if success else '❌'} Connexion API: {message}")

            return self.get_status()
        finally:
            self.sampler.close()
            self.dispatcher.close()

    def get_status(self):
        """
        Retourne le statut de l'agent

        Returns:
            dict: Statistiques de l'échantillonneur, du planificateur et des plugins
        """
        plugins = {}
        for plugin in self.dispatcher.plugins:
            plugin_status = {'failures': self.dispatcher.failures.get(plugin.name, 0)}
            if isinstance(plugin, ApiPlugin):
                plugin_status.update(plugin.get_stats())
            plugins[plugin.name] = plugin_status

        return {
            'running': self.running,
            'sampler': self.sampler.get_stats(),
            'scheduler': self.scheduler.get_status() if self.scheduler else None,
            'plugins': plugins
        }

    def _setup_signal_handlers(self):
        """
        Configure les gestionnaires de signaux pour l'arrêt propre
        """
        def signal_handler(signum, frame):
            signal_name = signal.Signals(signum).name
            self.app_logger.info(f"Signal {signal_name} reçu - Arrêt en cours...")
            self.running = False
            self.shutdown_event.set()

        if hasattr(signal, 'SIGTERM'):
            signal.signal(signal.SIGTERM, signal_handler)

        if hasattr(signal, 'SIGINT'):
            signal.signal(signal.SIGINT, signal_handler)

        # Windows
        if hasattr(signal, 'SIGBREAK'):
            signal.signal(signal.SIGBREAK, signal_handler)

    def shutdown(self):
        """
        Arrête proprement tous les composants de l'agent
        """
        self.app_logger.info("Arrêt du Watchman System Monitor...")

        self.running = False
        self.shutdown_event.set()

        if self.scheduler:
            if self.scheduler.is_running:
                self.scheduler.stop()
            self.scheduler = None

        self.sampler.close()
        self.dispatcher.close()

        self.app_logger.info("Watchman System Monitor arrêté proprement")


def main():
    """
    Point d'entrée principal avec gestion des arguments de ligne de commande
    """
    parser = argparse.ArgumentParser(
        description='Watchman System Monitor - Surveillance CPU, mémoire et disque'
    )

    parser.add_argument(
        '--config', '-c',
        type=str,
        help='Chemin vers le fichier de configuration'
    )

    parser.add_argument(
        '--mode', '-m',
        choices=['service', 'once', 'test'],
        default='service',
        help='Mode de fonctionnement de l\'agent'
    )

    parser.add_argument(
        '--create-config',
        action='store_true',
        help='Crée un fichier de configuration par défaut'
    )

    parser.add_argument(
        '--validate-config',
        action='store_true',
        help='Valide la configuration actuelle'
    )

    parser.add_argument(
        '--output', '-o',
        type=str,
        help='Fichier JSON de sortie pour l\'échantillon (mode once)'
    )

    args = parser.parse_args()

    if args.create_config:
        if not args.config:
            print("❌ --config est requis avec --create-config")
            return 1
        try:
            create_default_config(args.config)
            print(f"✅ Configuration par défaut créée: {args.config}")
            return 0
        except OSError as e:
            print(f"❌ Erreur création configuration: {e}")
            return 1

    if args.validate_config:
        if AgentConfig(args.config).validate():
            print("✅ Configuration valide")
            return 0
        print("❌ Configuration invalide")
        return 1

    try:
        agent = SystemMonitorAgent(args.config)
    except Exception as e:
        print(f"❌ Erreur initialisation agent: {e}")
        return 1

    try:
        if args.mode == 'service':
            agent.run_service_mode()

        elif args.mode == 'once':
            snapshot = agent.run_once()
            if args.output:
                with open(args.output, 'w', encoding='utf-8') as f:
                    json.dump(snapshot.to_dict(), f, indent=2, ensure_ascii=False)
                print(f"✅ Échantillon sauvegardé dans: {args.output}")

        elif args.mode == 'test':
            status = agent.run_test_mode()
            print(json.dumps(status, indent=2, ensure_ascii=False, default=str))

        return 0

    except KeyboardInterrupt:
        print("\n🛑 Arrêt demandé par l'utilisateur")
        return 0
    except Exception as e:
        print(f"❌ Erreur: {e}")
        return 1


if __name__ == '__main__':
    raise SystemExit(main())
