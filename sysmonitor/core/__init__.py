"""
Module Core - Composants principaux de l'agent de surveillance

Ce module contient les fonctionnalités de base de l'agent :
- Configuration
- Logging
- Modèle de données des échantillons
- Échantillonnage des ressources
- Planification des cycles et distribution aux plugins
"""
