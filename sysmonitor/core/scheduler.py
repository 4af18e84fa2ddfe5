"""
Module de planification pour l'agent de surveillance

Ce module gère :
- La planification des cycles d'échantillonnage périodiques
- L'exécution des cycles en arrière-plan
- Le démarrage et l'arrêt du planificateur
"""

import threading
from datetime import datetime
from typing import Callable, Optional

import schedule


class MonitorScheduler:
    """
    Gestionnaire de planification pour l'agent de surveillance

    Cette classe utilise le module 'schedule' pour exécuter le cycle
    d'échantillonnage toutes les ``interval_seconds`` secondes. L'événement
    d'arrêt est partagé avec l'échantillonneur : stop() interrompt aussi
    une mesure CPU en cours.
    """

    def __init__(self, config, logger, cycle_callback: Callable[[], None],
                 stop_event: Optional[threading.Event] = None):
        """
        Initialise le scheduler

        Args:
            config: Instance de AgentConfig
            logger: Instance de AgentLogger
            cycle_callback: Fonction à appeler à chaque cycle
            stop_event: Événement d'arrêt partagé
        """
        self.config = config
        self.logger = logger.get_logger()
        self.cycle_callback = cycle_callback

        # État du scheduler
        self.is_running = False
        self.scheduler_thread = None
        self.stop_event = stop_event or threading.Event()

        self._schedule = schedule.Scheduler()
        self.interval_seconds = None
        self.cycles_run = 0
        self.last_run = None

        self._setup_schedule()

        self.logger.info("MonitorScheduler initialisé")

    def _setup_schedule(self):
        """
        Configure la planification basée sur la configuration
        """
        interval = self.config.getint('monitoring', 'interval_seconds', 5)
        if interval <= 0:
            self.logger.warning(f"Intervalle invalide '{interval}', utilisation de 5 secondes")
            interval = 5

        self.interval_seconds = interval
        self._schedule.clear()
        self._schedule.every(interval).seconds.do(self._scheduled_cycle)
        self.logger.info(f"Planification configurée: toutes les {interval} secondes")

    def _scheduled_cycle(self):
        """
        Méthode appelée par le scheduler pour déclencher un cycle
        """
        try:
            self.cycle_callback()
        except Exception:
            self.logger.exception("Erreur lors du cycle d'échantillonnage")
        finally:
            self.cycles_run += 1
            self.last_run = datetime.now()

    def start(self):
        """
        Démarre le scheduler en arrière-plan

        Le premier cycle est exécuté immédiatement.
        """
        if self.is_running:
            self.logger.warning("Scheduler déjà en cours d'exécution")
            return

        self.logger.info("Démarrage du scheduler...")

        self.is_running = True
        self.stop_event.clear()

        self.scheduler_thread = threading.Thread(
            target=self._scheduler_loop,
            name="MonitorScheduler",
            daemon=True
        )
        self.scheduler_thread.start()

        self.logger.info(f"Scheduler démarré (intervalle: {self.interval_seconds}s)")

    def stop(self):
        """
        Arrête le scheduler

        Stoppe proprement le thread de planification.
        """
        if not self.is_running:
            self.logger.warning("Scheduler pas en cours d'exécution")
            return

        self.logger.info("Arrêt du scheduler...")

        self.is_running = False
        self.stop_event.set()

        if self.scheduler_thread and self.scheduler_thread.is_alive():
            self.scheduler_thread.join(timeout=5)

        self.logger.info("Scheduler arrêté")

    def _scheduler_loop(self):
        """
        Boucle principale du scheduler
        """
        self.logger.debug("Boucle du scheduler démarrée")

        self._scheduled_cycle()

        while not self.stop_event.is_set():
            try:
                self._schedule.run_pending()
                self.stop_event.wait(timeout=0.5)

            except Exception:
                self.logger.exception("Erreur dans la boucle du scheduler")
                self.stop_event.wait(timeout=self.interval_seconds)

        self.logger.debug("Boucle du scheduler terminée")

    def force_run(self):
        """
        Force l'exécution immédiate d'un cycle
        """
        self.logger.info("Cycle d'échantillonnage forcé demandé")
        self._scheduled_cycle()

    def get_status(self) -> dict:
        """
        Retourne le statut actuel du scheduler

        Returns:
            dict: Informations sur l'état du scheduler
        """
        next_run = self._schedule.next_run
        return {
            'is_running': self.is_running,
            'interval_seconds': self.interval_seconds,
            'cycles_run': self.cycles_run,
            'last_run': self.last_run.isoformat() if self.last_run else None,
            'next_run': next_run.isoformat() if next_run else None,
        }
