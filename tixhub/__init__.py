# TixHub API
