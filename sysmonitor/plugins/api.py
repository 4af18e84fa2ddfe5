"""
Plugin de communication avec le serveur central

Ce module gère :
- L'envoi des échantillons au serveur central
- L'authentification
- La gestion des erreurs réseau
- Les nouvelles tentatives
"""

import json
import socket
import time
from datetime import datetime
from typing import Dict, Any, Tuple

import requests
import urllib3

from .base import MonitorPlugin
from ..core.models import SystemUsageSnapshot
from .. import __version__

# Désactiver les warnings SSL si nécessaire
urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

SUCCESS_STATUS_CODES = (200, 201, 202, 204)


class ApiPlugin(MonitorPlugin):
    """
    Envoie chaque échantillon à l'API distante

    Les erreurs HTTP et réseau sont journalisées et comptabilisées ;
    l'échantillon est alors perdu, il n'y a pas de file d'attente.
    """

    def __init__(self, config, logger):
        """
        Initialise le plugin avec la configuration API

        Args:
            config: Instance de AgentConfig
            logger: Instance de AgentLogger
        """
        super().__init__(config, logger)

        api_config = config.get_api_config()
        self.server_url = api_config['url']
        self.auth_token = api_config['auth_token']
        self.timeout = api_config['timeout']
        self.verify_ssl = api_config['verify_ssl']
        self.max_retries = api_config['max_retries']
        self.retry_delay = api_config['retry_delay']

        self.hostname = socket.gethostname()
        self.user_agent = f'WatchmanSystemMonitor/{__version__}'

        # Statistiques de communication
        self.last_successful_send = None
        self.send_attempts = 0
        self.send_failures = 0

        self.logger.info("ApiPlugin initialisé")
        self.logger.info(f"URL serveur: {self.server_url}")

    def _build_headers(self) -> Dict[str, str]:
        headers = {
            'Content-Type': 'application/json',
            'User-Agent': self.user_agent
        }
        if self.auth_token:
            headers['Authorization'] = f'Bearer {self.auth_token}'
        return headers

    def consume(self, snapshot: SystemUsageSnapshot) -> bool:
        success, _ = self.send_snapshot_with_retry(snapshot)
        return success

    def send_snapshot(self, snapshot: SystemUsageSnapshot) -> Tuple[bool, str]:
        """
        Envoie un échantillon au serveur

        Args:
            snapshot: Échantillon à envoyer

        Returns:
            Tuple[bool, str]: (Succès, Message de résultat)
        """
        self.send_attempts += 1

        try:
            payload = {
                'timestamp': datetime.now().isoformat(),
                'agent_version': __version__,
                'hostname': self.hostname,
                'data': snapshot.to_dict()
            }

            self.logger.debug(f"Taille des données: {len(json.dumps(payload))} bytes")

            response = requests.post(
                url=self.server_url,
                json=payload,
                headers=self._build_headers(),
                timeout=self.timeout,
                verify=self.verify_ssl
            )

            if response.status_code in SUCCESS_STATUS_CODES:
                self.last_successful_send = datetime.now()
                self.logger.debug(f"Échantillon envoyé (HTTP {response.status_code})")
                return True, f"Envoi réussi (HTTP {response.status_code})"

            elif response.status_code == 401:
                self.send_failures += 1
                error_msg = "Erreur d'authentification (token invalide ou manquant)"
                self.logger.error(error_msg)
                return False, error_msg

            elif response.status_code == 403:
                self.send_failures += 1
                error_msg = "Accès refusé par le serveur"
                self.logger.error(error_msg)
                return False, error_msg

            elif response.status_code == 400:
                self.send_failures += 1
                error_msg = f"Données invalides: {response.text[:200]}"
                self.logger.error(error_msg)
                return False, error_msg

            else:
                self.send_failures += 1
                error_msg = f"Erreur serveur HTTP {response.status_code}: {response.text[:200]}"
                self.logger.error(error_msg)
                return False, error_msg

        except requests.exceptions.Timeout:
            self.send_failures += 1
            error_msg = f"Timeout lors de l'envoi (>{self.timeout}s)"
            self.logger.error(error_msg)
            return False, error_msg

        except requests.exceptions.SSLError as e:
            self.send_failures += 1
            error_msg = f"Erreur SSL: {str(e)}"
            self.logger.error(error_msg)
            return False, error_msg

        except requests.exceptions.ConnectionError as e:
            self.send_failures += 1
            error_msg = f"Erreur de connexion: {str(e)}"
            self.logger.error(error_msg)
            return False, error_msg

        except requests.exceptions.RequestException as e:
            self.send_failures += 1
            error_msg = f"Erreur inattendue: {str(e)}"
            self.logger.exception("Erreur lors de l'envoi de l'échantillon")
            return False, error_msg

    def send_snapshot_with_retry(self, snapshot: SystemUsageSnapshot) -> Tuple[bool, str]:
        """
        Envoie l'échantillon avec nouvelles tentatives

        Args:
            snapshot: Échantillon à envoyer

        Returns:
            Tuple[bool, str]: (Succès final, Message de résultat)
        """
        last_error = ""

        for attempt in range(self.max_retries + 1):
            if attempt > 0:
                self.logger.info(f"Tentative {attempt + 1}/{self.max_retries + 1}")
                time.sleep(self.retry_delay)

            success, message = self.send_snapshot(snapshot)
            if success:
                return True, message

            last_error = message

        if self.max_retries:
            self.logger.error(f"Échec définitif après {self.max_retries + 1} tentatives")
        return False, last_error

    def test_connection(self) -> Tuple[bool, str]:
        """
        Teste la connexion au serveur sans envoyer de données

        Returns:
            Tuple[bool, str]: (Connexion OK, Message de statut)
        """
        try:
            self.logger.info("Test de connexion au serveur...")

            response = requests.get(
                url=self.server_url,
                headers=self._build_headers(),
                timeout=self.timeout,
                verify=self.verify_ssl
            )

            if response.status_code in [200, 404, 405]:  # 404/405 = serveur répond mais endpoint inexistant
                self.logger.info("Connexion au serveur réussie")
                return True, "Connexion OK"
            else:
                error_msg = f"Serveur répond avec code {response.status_code}"
                self.logger.warning(error_msg)
                return False, error_msg

        except requests.exceptions.Timeout:
            error_msg = "Timeout lors du test de connexion"
            self.logger.error(error_msg)
            return False, error_msg

        except requests.exceptions.ConnectionError:
            error_msg = "Impossible de se connecter au serveur"
            self.logger.error(error_msg)
            return False, error_msg

        except requests.exceptions.RequestException as e:
            error_msg = f"Erreur lors du test: {str(e)}"
            self.logger.error(error_msg)
            return False, error_msg

    def get_stats(self) -> Dict[str, Any]:
        """
        Retourne les statistiques de communication

        Returns:
            dict: Statistiques d'envoi
        """
        return {
            'last_successful_send': self.last_successful_send.isoformat() if self.last_successful_send else None,
            'total_attempts': self.send_attempts,
            'total_failures': self.send_failures,
            'success_rate': ((self.send_attempts - self.send_failures) / self.send_attempts * 100) if self.send_attempts > 0 else 0,
            'server_url': self.server_url
        }
