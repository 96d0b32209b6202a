from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from subnetly.database import Base


class WifiNetwork(Base):
    __tablename__ = "wifi_networks"

    id = Column(Integer, primary_key=True, index=True)
    site_id = Column(Integer, ForeignKey("sites.id"), nullable=False, index=True)
    vlan_id = Column(Integer, ForeignKey("vlans.id"), nullable=True)
    subnet_id = Column(Integer, ForeignKey("subnets.id"), nullable=True)
    ssid = Column(String(64), nullable=False)
    security = Column(String(30), default="wpa2-personal")
    passphrase = Column(String(512), nullable=True)  # Fernet ciphertext, see crypto.py
    band = Column(String(10), default="both")         # 2.4, 5, 6, both
    hidden = Column(Boolean, default=False)
    enabled = Column(Boolean, default=True)
    guest_network = Column(Boolean, default=False)
    client_isolation = Column(Boolean, default=False)
    band_steering = Column(Boolean, default=True)
    pmf = Column(String(20), default="optional")      # disabled, optional, required
    tx_power = Column(String(20), default="auto")
    min_rate = Column(Integer, nullable=True)         # Mbps
    description = Column(Text)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    vlan = relationship("VLAN")
    subnet = relationship("Subnet")
